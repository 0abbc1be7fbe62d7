# Event and error codes specific to the link stats handler
MISSING_SHORTCODE = 'MISSING_SHORTCODE'
MISSING_CREDENTIALS = 'MISSING_CREDENTIALS'
