# Event and error codes specific to the redirect URL handler
MISSING_SHORTCODE = 'MISSING_SHORTCODE'
