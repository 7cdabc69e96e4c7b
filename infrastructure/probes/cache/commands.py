"""
Redis command classification for the measurable client.
"""

# Client methods forwarded without measurement: they are local, administrative
# or carry no latency/error signal worth reporting.
UNMEASURED_COMMANDS = frozenset({
    # serialization helpers
    "get_encoder",
    # option getters/setters
    "get_connection_kwargs",
    "set_response_callback",
    "get_retry",
    "set_retry",
    # authentication
    "auth",
    # connection state and lifecycle
    "connection",
    "get_connection",
    "initialize",
    "close",
    # liveness
    "ping",
    "echo",
    # database selection
    "select",
    "swapdb",
    # local objects, no I/O until used
    "pipeline",
    "pubsub",
    "lock",
    "register_script",
    "monitor",
    "client",
    "load_external_module",
    "json",
    "ft",
    "ts",
    "bf",
    "cf",
    "cms",
    "topk",
    "tdigest",
    # lazy scanners, nothing is sent until iteration
    "scan_iter",
    "sscan_iter",
    "hscan_iter",
    "zscan_iter",
})

# Methods named "<container>_<subcommand>" send the container command,
# e.g. config_get -> CONFIG GET, xinfo_stream -> XINFO STREAM.
CONTAINER_COMMANDS = frozenset({
    "acl",
    "client",
    "cluster",
    "command",
    "config",
    "debug",
    "function",
    "latency",
    "memory",
    "module",
    "pubsub",
    "script",
    "sentinel",
    "slowlog",
    "xgroup",
    "xinfo",
})

# Methods whose name differs from the command they send
COMMAND_ALIASES = {
    "delete": "DEL",
}


def command_name(method: str) -> str:
    """
    Return the protocol spelling of the command sent by a client method.

    >>> command_name("hgetall")
    'HGETALL'
    >>> command_name("delete")
    'DEL'
    >>> command_name("config_get")
    'CONFIG'
    """
    alias = COMMAND_ALIASES.get(method)
    if alias is not None:
        return alias

    container, _, subcommand = method.partition("_")
    if subcommand and container in CONTAINER_COMMANDS:
        return container.upper()

    return method.upper()


def command_from_args(args) -> str:
    """Command label for a raw `execute_command(*args)` call: its first word."""
    if not args:
        return "UNKNOWN"
    first = args[0]
    if isinstance(first, bytes):
        first = first.decode("utf-8", errors="replace")
    words = str(first).split()
    return words[0].upper() if words else "UNKNOWN"
