class ProviderError(Exception):
    pass


class ConfigurationError(ProviderError):
    pass


class StorageError(ProviderError):
    pass


class ProtocolDecodeError(ProviderError):

    def __init__(self, *args, protocol_error=None):
        ProviderError.__init__(self, *args)
        # The error as the protocol library reported it, if it did
        self.protocol_error = protocol_error


class IdentityResolutionError(ProviderError):
    pass


class AuthorizationMismatch(ProviderError):
    pass


class UserInputError(ProviderError):
    pass


class NoSuchState(UserInputError):
    pass


class AttributeReleaseError(ProviderError):
    pass


class InteractionRequired(ProviderError):
    pass
