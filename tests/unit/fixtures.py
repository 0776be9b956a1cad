"""
Shared option sections for the unit tests.
"""

from optenv.options.section import OptionSection, OptionSource
from optenv.options.value import OptionType


def build_server_section() -> OptionSection:
    """Option schema shaped like a database server's."""
    general = OptionSection("General options")
    general.add_option("config", "config,f", OptionType.STRING,
                       "configuration file specifying additional options",
                       sources=OptionSource.COMMAND_LINE)
    general.add_option("systemLog.verbosity", "verbose,v", OptionType.INT,
                       "log verbosity level", default=0, valid_range=(0, 5))
    general.add_option("processManagement.fork", "fork", OptionType.SWITCH, "fork server process")
    general.add_option("nounixsocket", "nounixsocket", OptionType.SWITCH,
                       "disable listening on unix sockets", sources=OptionSource.COMMAND_LINE)
    general.add_option("auth", "auth", OptionType.BOOL, "run with security")
    general.add_option("setParameter", "setParameter", OptionType.STRING_VECTOR,
                       "set a configurable parameter", composing=True)
    general.add_option("security.authorization", "authorization", OptionType.STRING,
                       "enable authorization", sources=OptionSource.YAML_CONFIG)

    net = OptionSection("Net options")
    net.add_option("net.port", "port", OptionType.INT, "specify port number",
                   default=27017, valid_range=(0, 65535))
    net.add_option("net.bindIp", "bind_ip", OptionType.STRING,
                   "comma separated list of ip addresses to listen on")
    net.add_option("net.maxIncomingConnections", "maxConns", OptionType.UNSIGNED,
                   "max number of simultaneous connections")

    storage = OptionSection("Storage options")
    storage.add_option("storage.dbPath", "dbpath", OptionType.STRING,
                       "directory for datafiles", default="/data/db")
    storage.add_option("storage.syncPeriodSecs", "syncdelay", OptionType.DOUBLE,
                       "seconds between disk syncs", default=60.0)
    storage.add_option("storage.quota.maxFilesPerDB", "quotaFiles", OptionType.LONG,
                       "number of files allowed per db")
    storage.add_option("storage.journal.commitIntervalMs", "journalCommitInterval",
                       OptionType.UNSIGNED_LONG_LONG, "how often to group/batch commit (ms)")
    storage.add_option("storage.repairPath", "repairpath", OptionType.STRING,
                       "root directory for repair files", requires=["storage.dbPath"])

    general.add_section(net)
    general.add_section(storage)
    return general
