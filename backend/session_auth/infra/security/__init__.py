from .password_hasher import WerkzeugPasswordHasher
from .token_generator import SecretsTokenGenerator

__all__ = ["SecretsTokenGenerator", "WerkzeugPasswordHasher"]
