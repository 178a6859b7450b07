from .config import Config, encrypt_secret
