# backend\security\validator.py
# Request Validation Layer: Validates incoming API request parameters to ensure security and data integrity.

from datetime import date

from backend.etl.processing.validator import USER_TYPES


class RequestValidator:
    """Security Layer: Validates incoming API request parameters"""

    @staticmethod
    def validate_filter_params(params):
        """
        Validates the filters shared by the cohort endpoints.
        Expected: start_date / end_date (YYYY-MM-DD, optional), user_type (optional)
        Returns (ok, error_message, filters).
        """
        filters = {}

        # 1. Dates must be ISO calendar dates
        for key in ('start_date', 'end_date'):
            value = params.get(key)
            if value:
                try:
                    date.fromisoformat(value)
                except ValueError:
                    return False, f"'{key}' must be a date in YYYY-MM-DD format.", None
                filters[key] = value

        if filters.get('start_date') and filters.get('end_date') and filters['start_date'] > filters['end_date']:
            return False, "'start_date' must not be after 'end_date'.", None

        # 2. user_type restricted to the known cohorts
        user_type = params.get('user_type', 'all')
        if user_type != 'all' and user_type not in USER_TYPES:
            return False, f"'user_type' must be one of: all, {', '.join(USER_TYPES)}.", None
        filters['user_type'] = user_type

        return True, "", filters

    @staticmethod
    def validate_limit(params, default=10):
        value = params.get('limit', default)
        try:
            limit = int(value)
        except (TypeError, ValueError):
            return False, "'limit' must be an integer.", None
        if not (1 <= limit <= 100):
            return False, "Invalid limit. Must be between 1 and 100.", None
        return True, "", limit
