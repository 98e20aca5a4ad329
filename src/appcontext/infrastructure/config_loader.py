"""
Configuration Loader
====================

Reads the JSON configuration file and decrypts the stored database
passwords so the rest of the application only ever sees plaintext.
"""

from pathlib import Path
from typing import Union

from pydantic import ValidationError

from appcontext.core.exceptions import (
    ConfigurationIOError,
    ConfigurationParseError,
    CredentialError,
)
from appcontext.domain.configuration import ApplicationConfiguration
from appcontext.infrastructure.crypto import KeyType, decrypt_aes
from appcontext.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


def load_configuration(
    file_path: Union[str, Path],
    decryption_key: KeyType,
) -> ApplicationConfiguration:
    """
    Load the configuration file and decrypt every database password.

    Args:
        file_path: Path of the JSON configuration file
        decryption_key: AES key the passwords were encrypted with

    Returns:
        ApplicationConfiguration: Configuration holding plaintext passwords

    Raises:
        ConfigurationIOError: If the file cannot be read
        ConfigurationParseError: If the content is not a valid configuration
        CredentialError: If any password fails to decrypt
    """
    path = Path(file_path)

    try:
        content = path.read_bytes()
    except OSError as e:
        logger.error(f"Unable to read config file: {path}. Error is: {e}")
        raise ConfigurationIOError(str(path), str(e)) from e

    try:
        cfg = ApplicationConfiguration.model_validate_json(content)
    except ValidationError as e:
        logger.error(f"Unable to decode JSON data. Error: {e}")
        raise ConfigurationParseError(
            f"Invalid configuration file {path}: {e}",
            {"path": str(path), "errors": e.error_count()}
        ) from e

    decrypted = []
    for dbcfg in cfg.connections:
        try:
            password = decrypt_aes(decryption_key, dbcfg.db_password.strip())
        except CredentialError as e:
            message = f"Unable to decrypt DBPassword for {dbcfg.connection_name}: {e.message}"
            logger.error(message)
            raise type(e)(
                message,
                {**e.details, "connection_name": dbcfg.connection_name}
            ) from e
        decrypted.append(dbcfg.model_copy(update={"db_password": password}))

    logger.debug(f"Loaded {len(decrypted)} database connection(s) from {path}")
    return cfg.model_copy(update={"connections": decrypted})
