# Diagnostic statuses of the purge expired links handler
SUCCESS = 'success'
ERROR = 'error'
