class AppStatusCode:
    # validation
    INVALID_INPUT = "200"
    REQUIRED_VALIDATION_ERROR = "201"
    DUPLICATE_ADD_ERROR = "202"

    # operation
    OPERATION_FAILED = "300"
    OPERATION_ERROR = "301"
    NOT_FOUND = "302"
    IN_USE_CONFLICT = "303"
    STATUS_TRANSITION_INVALID = "304"
    READ_ONLY_RECORD = "305"

    # auth
    AUTHENTICATION_TOKEN_INVALID = "400"
