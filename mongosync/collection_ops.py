##################################################################################################
#                                        OVERVIEW                                                #
#                                                                                                #
# Collection-level building blocks of the sync engine:                                           #
# - choosing which source collections to copy,                                                   #
# - making sure the destination collection exists,                                               #
# - streaming source documents in fixed-size batches with bounded memory,                        #
# - writing one batch with a single bulk insert.                                                 #
#                                                                                                #
# Each pymongo failure is re-raised as the matching engine error with the original chained.      #
##################################################################################################


##################################################################################################
#                                            IMPORTS                                             #
##################################################################################################

from pymongo.errors import PyMongoError                             # MongoDB errors

from mongosync.errors import ProvisionError, ReadError, WriteError   # Engine errors
from mongosync.logs_config import logger                            # Logs and events
from mongosync.sync_job import DEFAULT_BATCH_SIZE                   # Default batch size

##################################################################################################
#                                        IMPLEMENTATION                                          #
##################################################################################################

def list_collections_to_sync(database, allowed=None):
    """
    Lists the source collections to copy, in the order the server reports them.

    With no allow-list every collection is returned. With an allow-list only the
    collections that also exist on the source are returned; names that do not exist
    on the source are skipped without error.

    Args:
        database (pymongo.database.Database): Source database.
        allowed (Iterable[str] | None): Optional allow-list of collection names.

    Returns:
        list[str]: Collection names to sync. May be empty.

    Raises:
        ReadError: If the source collections cannot be listed.
    """

    try:
        names = database.list_collection_names()
    except PyMongoError as e:
        raise ReadError(f"Cannot list collections of {database.name}: {e}") from e

    allowed = set(allowed or ())
    if not allowed:
        return list(names)

    selected = [name for name in names if name in allowed]
    missing = allowed.difference(selected)
    if missing:
        logger.debug(f"Ignoring collections not found on source: {sorted(missing)}")
    return selected


def ensure_collection(database, name):
    """
    Makes sure collection `name` exists in the destination database.

    Creation is only attempted when the existence check finds nothing, so calling it
    again for the same name is a no-op.

    Returns:
        bool: True if the collection was created, False if it already existed.

    Raises:
        ProvisionError: If the check or the creation fails, including a collection created
            concurrently by someone else between the check and the creation.
    """

    try:
        if database.list_collection_names(filter={"name": name}):
            return False
        database.create_collection(name)
    except PyMongoError as e:
        raise ProvisionError(f"Cannot create collection [{name}]: {e}", collection=name) from e
    return True


def chunk_cursor(cursor, batch_size=DEFAULT_BATCH_SIZE):
    """
    Splits a MongoDB cursor into smaller, manageable batches for memory-efficient processing.

    The buffer never holds more than `batch_size` documents. Every batch is full except
    possibly the last one, and no empty batch is produced.

    Args:
        cursor: Any iterable of documents, usually a pymongo cursor.
        batch_size (int): Number of documents to include in each batch.

    Yields:
        list: A batch (chunk) of documents from the cursor.
    """

    if batch_size < 1:
        raise ValueError(f"Batch size must be at least 1, got {batch_size}.")

    batch = []
    for doc in cursor:
        batch.append(doc)
        if len(batch) == batch_size:
            yield batch
            batch = []
    if batch:
        yield batch


def stream_batches(collection, batch_size=DEFAULT_BATCH_SIZE):
    """
    Reads every document of `collection` once, in cursor order, as batches.

    The driver is asked to fetch `batch_size` documents per round trip so network reads
    line up with the bulk inserts. The server-side cursor is closed as soon as the stream
    ends, including when the consumer stops early (write failure, cancellation or
    `close()` on the generator).

    Yields:
        list: Batches from `chunk_cursor`.

    Raises:
        ReadError: If the cursor fails while reading.
    """

    try:
        with collection.find({}).batch_size(batch_size) as cursor:
            for batch in chunk_cursor(cursor, batch_size):
                yield batch
    except PyMongoError as e:
        raise ReadError(f"Reading [{collection.name}] failed: {e}", collection=collection.name) from e


def write_batch(collection, batch):
    """
    Inserts every document of `batch` into `collection` with one ordered bulk insert.

    Documents are always inserted as new documents; nothing is deduplicated or upserted.
    An empty batch does nothing.

    Returns:
        int: Number of documents written.

    Raises:
        WriteError: If the bulk insert fails, for example on a duplicate `_id`.
    """

    if not batch:
        return 0

    try:
        result = collection.insert_many(batch, ordered=True)
    except PyMongoError as e:
        raise WriteError(f"Writing to [{collection.name}] failed: {e}", collection=collection.name) from e
    return len(result.inserted_ids)
