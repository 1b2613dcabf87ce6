"""Contains the MySQL implementation of the driver interface.

MySQL is the target system of RowBOUND: all statements are generated such that they can be executed by a MySQL server
that runs in *ANSI* sql_mode. This mode is important because RowBOUND quotes identifiers with double quotes (if quoting
is necessary at all). The `MysqlConnectionArguments` enable the mode by default.

Connection settings are typically read from a config file (*.mysql_connection.config* in the current working directory
by default). The file has to contain a ``[MYSQL]`` section with at least the *User* and *Database* keys, e.g.

.. code-block:: ini

    [MYSQL]
    User = rowbound
    Database = inventory
    Password = secret
    Host = 127.0.0.1
    Port = 3306

Identifiers are sent to the server unescaped, since the connector only substitutes *%s* placeholders and does not treat
any other *%* characters specially. As a consequence, identifiers must not contain the character sequence *%s*.
"""
from __future__ import annotations

import configparser
import dataclasses
import os
import textwrap
from collections.abc import Sequence
from typing import Any, Optional

import mysql.connector

from .. import util
from ._driver import (
    BoundParameters,
    Cursor,
    DatabaseServerError,
    DatabaseUserError,
    Driver,
    ResultCursor,
    error_message,
)


@dataclasses.dataclass(frozen=True)
class MysqlConnectionArguments:
    """Captures all relevant parameters that customize the way the connection to a MySQL instance is establised.

    The only required parameters are the user that should connect to the database and the name of the database to
    connect to.
    See [1]_ for the different parameters' meaning.

    References
    ----------
    .. [1] https://dev.mysql.com/doc/connector-python/en/connector-python-connectargs.html
    """
    user: str
    database: str
    password: str = ""
    host: str = "127.0.0.1"
    port: int = 3306
    use_unicode: bool = True
    charset: str = "utf8mb4"
    autocommit: bool = True
    sql_mode: str = "ANSI"

    def parameters(self) -> dict[str, str | int | bool]:
        """Provides all arguments in one neat ``dict``.

        Returns
        -------
        dict[str, str | int | bool]
            A mapping from parameter name to parameter value.
        """
        return dataclasses.asdict(self)


class MysqlDriver(Driver):
    """Driver for MySQL servers, based on the official MySQL connector.

    Parameters
    ----------
    connection_args : MysqlConnectionArguments
        Configuration and required information to establish a connection to some MySQL instance.
    system_name : str, optional
        Description of the specific MySQL server, by default *MySQL*
    timeout : Optional[int], optional
        Connect timeout in seconds. By default, the timeout of the connector is used.

    Raises
    ------
    DatabaseServerError
        If no connection can be established
    """

    def __init__(self, connection_args: MysqlConnectionArguments, system_name: str = "MySQL", *,
                 timeout: Optional[int] = None) -> None:
        super().__init__(system_name, placeholder="%s")
        self.connection_args = connection_args

        params: dict[str, Any] = connection_args.parameters()
        if timeout is not None and timeout > 0:
            params["connection_timeout"] = timeout
        try:
            self._cnx = mysql.connector.connect(**params)
        except mysql.connector.Error as e:
            raise DatabaseServerError(f"Could not connect to MySQL database '{connection_args.database}' at "
                                      f"{connection_args.host}:{connection_args.port}: {e}", e)
        self._cur = self._cnx.cursor(buffered=True)

    def list_tables(self) -> Sequence[str]:
        query_template = textwrap.dedent("""
            SELECT table_name
            FROM information_schema.tables
            WHERE table_schema = DATABASE() AND table_type = 'BASE TABLE'
            ORDER BY table_name
            """)
        result_set = self.query(query_template).rows()
        return [_as_text(row[0]) for row in result_set]

    def describe_columns(self, table: str) -> Sequence[tuple[str, str]]:
        query_template = textwrap.dedent("""
            SELECT column_name, column_type
            FROM information_schema.columns
            WHERE table_schema = DATABASE() AND table_name = %s
            ORDER BY ordinal_position
            """)
        result_set = self.query(query_template, (table,)).rows()
        return [(_as_text(row[0]), _as_text(row[1])) for row in result_set]

    def execute(self, statement: str, parameters: Optional[BoundParameters] = None) -> int:
        self._run(statement, parameters)
        return self._cur.rowcount

    def query(self, statement: str, parameters: Optional[BoundParameters] = None) -> ResultCursor:
        self._run(statement, parameters)
        return ResultCursor.from_cursor(self._cur)

    def database_name(self) -> str:
        self._cur.execute("SELECT DATABASE();")
        return _as_text(self._cur.fetchone()[0])

    def server_mode(self) -> str:
        """Provides the current settings in the ``sql_mode`` MySQL variable.

        Returns
        -------
        str
            The ``sql_mode`` value, exactly as it is returned by the server. Typically, this is a list of
            comma-separated features.
        """
        self._cur.execute("SELECT @@session.sql_mode")
        return _as_text(self._cur.fetchone()[0])

    def cursor(self) -> Cursor:
        return self._cur

    def describe(self) -> util.jsondict:
        base_info = super().describe()
        base_info["sql_mode"] = self.server_mode()
        return base_info

    def _close_connection(self) -> None:
        self._cur.close()
        self._cnx.close()

    def _run(self, statement: str, parameters: Optional[BoundParameters]) -> None:
        try:
            self._cur.execute(statement, tuple(parameters) if parameters else None)
        except (mysql.connector.errors.OperationalError, mysql.connector.errors.InterfaceError,
                mysql.connector.errors.InternalError) as e:
            raise DatabaseServerError(error_message(statement, e), e)
        except mysql.connector.Error as e:
            raise DatabaseUserError(error_message(statement, e), e)


def _as_text(value: Any) -> str:
    """Depending on the server version, the connector returns information_schema values as byte strings."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8")
    return str(value)


_IntSettings = {"port"}
_BoolSettings = {"use_unicode", "autocommit"}


def _parse_mysql_connection(config_file: str) -> MysqlConnectionArguments:
    config = configparser.ConfigParser()
    try:
        config.read(config_file)
    except configparser.Error as e:
        raise ValueError(f"Malformed MySQL config file '{config_file}': {e}") from e
    if "MYSQL" not in config:
        raise ValueError("Malformed MySQL config file: no [MYSQL] section found.")
    mysql_config = config["MYSQL"]

    if "User" not in mysql_config or "Database" not in mysql_config:
        raise ValueError("Malformed MySQL config file: "
                         "'User' and 'Database' keys are required in the [MYSQL] section.")
    user = mysql_config["User"]
    database = mysql_config["Database"]

    optional_settings: dict[str, Any] = {}
    for key in ["Password", "Host", "Port", "UseUnicode", "Charset", "Autocommit", "SqlMode"]:
        if key not in mysql_config:
            continue
        setting = util.camel_case2snake_case(key)
        value = mysql_config[key]
        if setting in _IntSettings:
            optional_settings[setting] = int(value)
        elif setting in _BoolSettings:
            optional_settings[setting] = util.parse_bool(value)
        else:
            optional_settings[setting] = value
    return MysqlConnectionArguments(user, database, **optional_settings)


def connect(*, connection_args: Optional[MysqlConnectionArguments] = None,
            config_file: str = ".mysql_connection.config", timeout: Optional[int] = None,
            system_name: str = "MySQL") -> MysqlDriver:
    """Convenience function to connect to a MySQL server.

    Connection arguments that are supplied directly take precedence over the config file.

    Parameters
    ----------
    connection_args : Optional[MysqlConnectionArguments], optional
        The connection settings. If omitted, they are read from the `config_file`.
    config_file : str, optional
        The INI file to read the connection settings from. Defaults to *.mysql_connection.config* in the current working
        directory.
    timeout : Optional[int], optional
        Connect timeout in seconds, passed straight to the connector.
    system_name : str, optional
        Description of the specific MySQL server, by default *MySQL*

    Returns
    -------
    MysqlDriver
        The driver, connected to the server

    Raises
    ------
    ValueError
        If neither connection arguments nor a (well-formed) config file are available
    DatabaseServerError
        If the server cannot be reached
    """
    if config_file and not connection_args:
        if not os.path.exists(config_file):
            raise ValueError(f"Failed to obtain a database connection. Tried to read the config file '{config_file}' "
                             f"from your current working directory ({os.getcwd()}), but the file was not found.")
        connection_args = _parse_mysql_connection(config_file)
    elif not connection_args:
        raise ValueError("Connection arguments or config file are required to connect to MySQL")

    return MysqlDriver(connection_args, system_name=system_name, timeout=timeout)
