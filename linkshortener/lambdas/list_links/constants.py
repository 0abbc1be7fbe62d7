# Event and error codes specific to the list links handler
INVALID_PAGINATION = 'INVALID_PAGINATION'
MISSING_CREDENTIALS = 'MISSING_CREDENTIALS'
