##################################################################################################
#                                        OVERVIEW                                                #
#                                                                                                #
# This module opens the MongoDB connections used by a sync job. It uses a context manager       #
# pattern to ensure proper opening and closing of connections: the client is verified with a    #
# `ping` on entry and always closed on exit, whatever happened in between.                       #
##################################################################################################


##################################################################################################
#                                            IMPORTS                                             #
##################################################################################################

from pymongo import MongoClient                         # MongoDB
from pymongo.errors import PyMongoError                 # MongoDB

from mongosync.errors import SyncConnectionError        # Engine errors
from mongosync.logs_config import logger                # Logs and events

##################################################################################################
#                                       MONGODB CONNECTION                                       #
#                                                                                                #
# Class to manage one Mongo database connection                                                  #
##################################################################################################

# Client options applied unless the server spec overrides them
DEFAULT_CLIENT_OPTIONS = {
    "serverSelectionTimeoutMS": 30000,  # Timeout when connecting to the server (30 seconds)
    "connectTimeoutMS": 60000,
    "socketTimeoutMS": 120000,  # Socket operation timeout time
    "maxPoolSize": 50,  # Maximum connection pool size
    "retryWrites": True,  # Allows automatic retry of writes
}


class MongoDBConnection:
    """
    Connection to one database of a MongoDB deployment.

    Args:
        server (ServerSpec): URI and extra client options.
        database_name (str): Database to hand out through `self.database`.
        role (str): Label used in log lines, e.g. "source" or "target".
    """

    def __init__(self, server, database_name, role="mongo"):
        self.server = server
        self.database_name = database_name
        self.role = role
        self.client = None
        self.database = None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def connect(self):
        """
        Creates the client and checks the server answers.

        MongoClient connects lazily, so a `ping` is sent to surface an unreachable
        server or bad credentials here rather than in the middle of the first read.

        Raises:
            SyncConnectionError: If the client cannot be created or the ping fails.
        """

        options = dict(DEFAULT_CLIENT_OPTIONS)
        options.update(self.server.options)

        try:
            self.client = MongoClient(self.server.uri, **options)
            self.client.admin.command("ping")
        except (PyMongoError, ValueError, TypeError) as e:
            self.close()
            logger.error(f"Cannot connect to {self.role} server {self.server!r}: {e}")
            raise SyncConnectionError(f"Cannot connect to {self.role} server: {e}") from e

        self.database = self.client[self.database_name]
        logger.info(f"MongoDB {self.role} connection opened | DATABASE: {self.database_name}")

    def collection(self, name):
        return self.database[name]

    def close(self):
        if self.client is None:
            return
        self.client.close()
        self.client = None
        self.database = None
        logger.info(f"MongoDB {self.role} connection closed.")
