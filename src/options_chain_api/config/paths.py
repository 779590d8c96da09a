"""Environment variables consulted when paths are not given via CLI/YAML."""

INPUT_PATH_ENV = "DATA_INPUT_PATH"
OUTPUT_PATH_ENV = "API_OUTPUT_PATH"
