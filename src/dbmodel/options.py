from dataclasses import dataclass

from dbmodel.strategy import get_available_dialects, get_strategy_class
from dbmodel.strategy import is_supported_dialect

from libb import ConfigOptions, scriptname

__all__ = ['SchemaOptions']


@dataclass
class SchemaOptions(ConfigOptions):
    """Options

    supported driver names: `sqlite`, `postgresql`

    Schema application options:
    - check_connection: Retry statements that fail with a transient
      connection error (default: True)
    - strict: Raise StatementSubmissionFailure after a batch in which any
      statement failed (default: False)
    - echo: Pass SQLAlchemy's echo flag through to the engine (default: False)
    """
    drivername: str = 'sqlite'
    hostname: str = None
    username: str = None
    password: str = None
    database: str = None
    port: int = 0
    timeout: int = 0
    appname: str = None
    check_connection: bool = True
    strict: bool = False
    echo: bool = False

    def __post_init__(self):
        if not is_supported_dialect(self.drivername):
            available = get_available_dialects()
            raise ValueError(f'drivername must be one of: {available}')
        self.appname = self.appname or scriptname() or 'python_console'
        strategy_cls = get_strategy_class(self.drivername)
        strategy_cls.validate_options(self)
