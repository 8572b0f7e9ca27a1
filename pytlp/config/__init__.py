from pytlp.config.parser import parse_config_file
from pytlp.config.resolver import ConfigError, ConfigResolver, DefaultsMissingError, UserConfigMissingError
from pytlp.config.store import Parameter, ParameterStore
