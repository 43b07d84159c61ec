##################################################################################################
#                                        OVERVIEW                                                #
#                                                                                                #
# Job description objects: which servers to connect to, which database to read from and write  #
# into, which collections to copy and how many documents go into each bulk insert.               #
# A job can be built directly or loaded from environment variables (.env is read with dotenv).   #
##################################################################################################


##################################################################################################
#                                            IMPORTS                                             #
##################################################################################################

import os
import urllib.parse                                     # MongoDB

from dotenv import load_dotenv

##################################################################################################
#                                        CONFIGURATION                                           #
##################################################################################################

DEFAULT_BATCH_SIZE = 1000   # Number of documents per bulk insert

SOURCE_PREFIX = "SOURCE"    # Prefix of the source server variables (SOURCE_MONGO_URI, ...)
TARGET_PREFIX = "TARGET"    # Prefix of the destination server variables (TARGET_MONGO_URI, ...)

##################################################################################################
#                                        IMPLEMENTATION                                          #
##################################################################################################

def build_mongo_uri(prefix):
    """
    Builds a MongoDB URI from `<prefix>_MONGO_*` environment variables.

    `<prefix>_MONGO_URI` wins when set. Otherwise the URI is assembled from
    `<prefix>_MONGO_USER`, `<prefix>_MONGO_PASS`, `<prefix>_MONGO_HOST` and
    `<prefix>_MONGO_PORT`, with the credentials escaped. Without a user the URI has
    no credentials part.

    Args:
        prefix (str): Variable prefix, for example "SOURCE" or "TARGET".

    Returns:
        str: A mongodb:// connection string.
    """

    uri = os.getenv(f"{prefix}_MONGO_URI")
    if uri:
        return uri

    user = os.getenv(f"{prefix}_MONGO_USER")
    password = os.getenv(f"{prefix}_MONGO_PASS", "")
    host = os.getenv(f"{prefix}_MONGO_HOST", "localhost")
    port = os.getenv(f"{prefix}_MONGO_PORT", "27017")

    if user:
        escaped_usr = urllib.parse.quote_plus(user)
        escaped_pwd = urllib.parse.quote_plus(password)
        return f"mongodb://{escaped_usr}:{escaped_pwd}@{host}:{port}/"
    return f"mongodb://{host}:{port}/"


def parse_collection_list(value):
    """Splits a comma-separated list of collection names, dropping blanks."""

    if not value:
        return []
    return [name.strip() for name in value.split(",") if name.strip()]


class ServerSpec:
    """
    Where and how to connect to one MongoDB deployment.

    `options` are handed to `pymongo.MongoClient` as keyword arguments, on top of the
    engine's default client options.
    """

    def __init__(self, uri, options=None):
        if not uri:
            raise ValueError("A MongoDB connection URI is required.")
        self.uri = uri
        self.options = dict(options or {})

    def __repr__(self):
        # Never print credentials
        host = self.uri.rsplit("@", 1)[-1]
        return f"ServerSpec({host!r})"


class SyncJob:
    """
    A one-shot copy of collections from a source database into a destination database.

    The destination database name falls back to the source database name, and is
    resolved here so it is always concrete before any collection work starts.
    """

    def __init__(self, source, target, source_database, target_database=None,
                 collections=None, batch_size=DEFAULT_BATCH_SIZE):
        if not source_database:
            raise ValueError("The source database name is required.")
        if batch_size < 1:
            raise ValueError(f"Batch size must be at least 1, got {batch_size}.")

        self.source = source
        self.target = target
        self.source_database = source_database
        self.target_database = target_database or source_database
        self.collections = list(collections or [])
        self.batch_size = batch_size

    def __repr__(self):
        return (
            f"SyncJob({self.source!r}/{self.source_database} -> "
            f"{self.target!r}/{self.target_database}, "
            f"collections={self.collections or 'ALL'}, batch_size={self.batch_size})"
        )

    @classmethod
    def from_env(cls, **overrides):
        """
        Loads a job from environment variables, after reading `.env` if present.

        Keyword overrides replace the matching environment value when they are not None,
        so command-line flags can take precedence over the environment.

        Recognised overrides: source_uri, target_uri, source_database, target_database,
        collections (list of names), batch_size.

        Returns:
            SyncJob: The configured job.

        Raises:
            ValueError: If a required value is missing or malformed.
        """

        load_dotenv()

        def pick(key, env_value):
            value = overrides.get(key)
            return env_value if value is None else value

        source_uri = pick("source_uri", build_mongo_uri(SOURCE_PREFIX))
        target_uri = pick("target_uri", build_mongo_uri(TARGET_PREFIX))
        source_database = pick("source_database", os.getenv("SOURCE_DATABASE"))
        target_database = pick("target_database", os.getenv("TARGET_DATABASE"))
        collections = pick("collections", parse_collection_list(os.getenv("SYNC_COLLECTIONS")))

        raw_batch_size = pick("batch_size", os.getenv("SYNC_BATCH_SIZE", DEFAULT_BATCH_SIZE))
        try:
            batch_size = int(raw_batch_size)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid batch size: {raw_batch_size!r}")

        return cls(
            source=ServerSpec(source_uri),
            target=ServerSpec(target_uri),
            source_database=source_database,
            target_database=target_database,
            collections=collections,
            batch_size=batch_size,
        )


class CollectionTask:
    """One collection to copy: its name plus the source and destination collection handles."""

    def __init__(self, name, source_collection, target_collection):
        self.name = name
        self.source_collection = source_collection
        self.target_collection = target_collection

    def __repr__(self):
        return f"CollectionTask({self.name!r})"
