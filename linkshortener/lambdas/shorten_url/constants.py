# Event and error codes specific to the shorten URL handler
INVALID_JSON_BODY = 'INVALID_JSON_BODY'
MISSING_TARGET_URL = 'MISSING_TARGET_URL'
INVALID_FIELD_TYPE = 'INVALID_FIELD_TYPE'
