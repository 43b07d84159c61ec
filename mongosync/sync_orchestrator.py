##################################################################################################
#                                        OVERVIEW                                                #
#                                                                                                #
# Runs a sync job end to end:                                                                    #
#   connect -> list collections -> for each collection: create, stream, insert -> close          #
#                                                                                                #
# Collections are copied one at a time, in the order the source lists them. Each batch is fully  #
# read and then fully written before the next one is accumulated. The first error aborts the     #
# whole job; both connections are closed on every exit path.                                     #
##################################################################################################


##################################################################################################
#                                            IMPORTS                                             #
##################################################################################################

from contextlib import closing                                      # Stream cleanup

from pymongo.errors import PyMongoError                             # MongoDB errors
from tqdm import tqdm                                               # Progress bar

from mongosync.collection_ops import (                              # Collection operations
    ensure_collection,
    list_collections_to_sync,
    stream_batches,
    write_batch,
)
from mongosync.database_connections import MongoDBConnection        # Database connection
from mongosync.errors import ReadError, SyncCancelled, SyncError    # Engine errors
from mongosync.logs_config import logger                            # Logs and events
from mongosync.sync_job import CollectionTask                       # Per-collection unit of work

##################################################################################################
#                                        IMPLEMENTATION                                          #
##################################################################################################

class ProgressCounter:
    """
    Estimate of the documents still to copy for one collection.

    Seeded once from the source document count, so it can drift if the source changes
    during the copy. It is only used for reporting and never goes below zero.
    """

    def __init__(self, name, total):
        self.name = name
        self.total = total
        self.remaining = total
        self.written = 0

    def advance(self, count):
        self.written += count
        self.remaining = max(self.remaining - count, 0)
        return self.remaining


def count_source_documents(collection):
    """
    Estimates the documents of a source collection, for progress reporting only.

    Uses collection metadata instead of scanning the collection, since the figure only seeds
    the progress estimate.
    """

    try:
        return collection.estimated_document_count()
    except PyMongoError as e:
        raise ReadError(f"Counting [{collection.name}] failed: {e}", collection=collection.name) from e


def sync_collection(task, batch_size, cancel_event=None, show_progress=True):
    """
    Copies every document of one collection, batch by batch.

    Args:
        task (CollectionTask): Collection name and its source/destination handles.
        batch_size (int): Documents per bulk insert.
        cancel_event (threading.Event | None): Checked before each batch is written.
        show_progress (bool): Display a tqdm progress bar.

    Returns:
        int: Number of documents written.

    Raises:
        SyncCancelled: If `cancel_event` gets set.
        ReadError, WriteError: On source or destination failures.
    """

    progress = ProgressCounter(task.name, count_source_documents(task.source_collection))
    logger.info(f"[{task.name}] documents to sync: {progress.total}")

    batches = stream_batches(task.source_collection, batch_size)
    with closing(batches), \
         tqdm(total=progress.total, desc=f"Syncing {task.name}", disable=not show_progress) as pbar:
        for batch in batches:
            if cancel_event is not None and cancel_event.is_set():
                raise SyncCancelled(f"Sync cancelled while copying [{task.name}]", collection=task.name)

            written = write_batch(task.target_collection, batch)
            remaining = progress.advance(written)
            pbar.update(written)
            logger.info(f"[{task.name}] remaining : {remaining}")

    return progress.written


def synchronize(job, cancel_event=None, show_progress=True):
    """
    Copies the job's collections from the source database into the destination database.

    Fail-fast: the first error aborts the job and no later collection is attempted.
    Documents already written stay in the destination.

    Args:
        job (SyncJob): What to copy and where.
        cancel_event (threading.Event | None): Set it to stop the job between two batches.
        show_progress (bool): Display a tqdm progress bar per collection.

    Returns:
        dict[str, int]: Documents written per collection, in sync order. Empty when there
            was nothing to sync.

    Raises:
        SyncError: Any connection, provisioning, read, write or cancellation failure.
    """

    logger.info(f"Starting sync job: {job!r}")
    results = {}

    with MongoDBConnection(job.source, job.source_database, role="source") as source_conn, \
         MongoDBConnection(job.target, job.target_database, role="target") as target_conn:
        logger.info("Connected to both MongoDB servers")

        collection_names = list_collections_to_sync(source_conn.database, job.collections)
        if collection_names:
            logger.info(f"Collections to sync ({len(collection_names)}): {collection_names}")
        else:
            logger.info("No collections to sync")

        for name in collection_names:
            logger.info("-" * 40)
            logger.info(f"Syncing collection: [{name}]")

            try:
                if ensure_collection(target_conn.database, name):
                    logger.info(f"Created collection: [{name}]")

                task = CollectionTask(name, source_conn.collection(name), target_conn.collection(name))
                results[name] = sync_collection(task, job.batch_size, cancel_event, show_progress)
            except SyncError as e:
                logger.error(f"❌ Sync aborted at collection [{name}]: {e}")
                raise

            logger.info(f"Synced collection: [{name}] ({results[name]} documents)")

        if collection_names:
            logger.info("All collections synced successfully")

    logger.info("Connections closed")
    return results
