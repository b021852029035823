class CalverTagError(Exception):
    """Base class for every failure that terminates a run."""


class InvalidReferenceError(CalverTagError):
    pass


class InvalidAuthModeError(CalverTagError):
    def __init__(self, auth_mode):
        super().__init__('Invalid auth_mode: ' + str(auth_mode))
        self.auth_mode = auth_mode


class MissingCredentialError(CalverTagError):
    def __init__(self, field, auth_mode):
        super().__init__('Input required and not supplied: ' + field + ' (auth_mode ' + auth_mode + ')')
        self.field = field
        self.auth_mode = auth_mode


class RegistryCallError(CalverTagError):
    pass


class RegistryResponseError(CalverTagError):
    def __init__(self, status_code, reason):
        super().__init__(str(status_code) + ': ' + (reason or ''))
        self.status_code = status_code
        self.reason = reason


class RegistryDecodeError(CalverTagError):
    pass
