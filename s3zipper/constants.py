"""Configuration names, defaults and API paths used across the service."""

LOGGING_CONFIG_FILE_ENV_VAR = "LOG4RS_CONFIG_FILE"
LOGGING_CONFIG_FILE_DEFAULT = "logging_config.yaml"

API_SERVER_HOST_ENV_VAR = "API_SERVER_HOST"
API_SERVER_PORT_ENV_VAR = "API_SERVER_PORT"
API_SERVER_HOST_DEFAULT = "0.0.0.0"
API_SERVER_PORT_DEFAULT = "8097"

SERVER_RUNNING_STATUS = "server is running"
DELETE_OK_STATUS = "deleted ok"

API_HEALTH_CHECK_PATH = "/health"
API_MAIN_PATH = "/api/v1"
API_DOWNLOAD_MAIN_PATH = "/api/v1/download"
API_DOWNLOAD_ALL_AS_ZIP_PATH = "/zip"

AWS_S3_MAX_FILE_QUANTITY_ENV_VAR = "AWS_S3_MAX_FILE_QUANTITY"
AWS_S3_MAX_FILE_QUANTITY_DEFAULT = "100"

# Maximum object size in bytes (2 MiB by default).
AWS_S3_MAX_FILE_SIZE_BYTES_ENV_VAR = "AWS_S3_MAX_FILE_SIZE_BYTES"
AWS_S3_MAX_FILE_SIZE_BYTES_DEFAULT = "2097152"