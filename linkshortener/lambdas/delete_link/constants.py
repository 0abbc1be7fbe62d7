# Event and error codes specific to the delete link handler
MISSING_SHORTCODE = 'MISSING_SHORTCODE'
MISSING_CREDENTIALS = 'MISSING_CREDENTIALS'
