# Utility functions for the resort backend
from .logging_utils import bind_log_context, reset_log_context, setup_logging
from .pagination import PageParams, get_page_params, paginate_queryset, total_pages
from .validators import (
    normalize_phone_number,
    parse_date,
    validate_email,
    validate_max_length,
    validate_name,
    validate_password,
    validate_phone_number,
    validate_required_fields,
    validate_username,
)
