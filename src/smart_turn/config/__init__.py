from .settings import (
    ConfigInvalid,
    ConfigValid,
    ConfigValidation,
    SmartTurnConfig,
    create_example_env_file,
    load_config,
    require_valid,
    setup_logging,
    validate_config,
)
