##################################################################################################
#                                        OVERVIEW                                                #
#                                                                                                #
# Command-line entry point. Copies collections from a source MongoDB database into a destination database,    #
# possibly on another cluster. Documents are streamed and inserted in batches, so collections    #
# larger than memory can be copied.                                                              #
#                                                                                                #
# Key Features:                                                                                  #
# - Copies every collection, or only the ones listed in SYNC_COLLECTIONS / --collections.        #
# - Creates missing destination collections before writing to them.                              #
# - Uses batch processing with bulk inserts (one insert_many per batch).                         #
# - Stops cleanly between two batches on SIGTERM.                                                #
#                                                                                                #
# Configuration Variables (.env or environment, overridden by command-line flags):               #
# - SOURCE_MONGO_URI / TARGET_MONGO_URI, or SOURCE_MONGO_USER, _PASS, _HOST, _PORT (and TARGET_) #
# - SOURCE_DATABASE: Database to copy from.                                                      #
# - TARGET_DATABASE: Database to copy into (defaults to SOURCE_DATABASE).                        #
# - SYNC_COLLECTIONS: Comma-separated allow-list of collections (defaults to all).               #
# - SYNC_BATCH_SIZE: Number of documents per bulk insert (defaults to 1000).                     #
##################################################################################################

##################################################################################################
#                                            IMPORTS                                             #
##################################################################################################

import argparse                                                     # Command-line flags
import signal                                                       # Graceful stop
import threading                                                    # Cancel event

from mongosync.errors import SyncError                              # Engine errors
from mongosync.logs_config import logger                            # Logs and events
from mongosync.sync_job import SyncJob, parse_collection_list       # Job configuration
from mongosync.sync_orchestrator import synchronize                 # Sync engine

##################################################################################################
#                                        CONFIGURATION                                           #
##################################################################################################

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130

##################################################################################################
#                                        IMPLEMENTATION                                          #
##################################################################################################

def build_parser():
    parser = argparse.ArgumentParser(
        description="Copy MongoDB collections from a source database to a destination database."
    )
    parser.add_argument("--source-uri", help="Source MongoDB URI (default: SOURCE_MONGO_URI)")
    parser.add_argument("--target-uri", help="Destination MongoDB URI (default: TARGET_MONGO_URI)")
    parser.add_argument("--source-db", help="Source database name (default: SOURCE_DATABASE)")
    parser.add_argument("--target-db", help="Destination database name (default: source database)")
    parser.add_argument("--collections", type=parse_collection_list,
                        help="Comma-separated collections to copy (default: all)")
    parser.add_argument("--batch-size", type=int, help="Documents per bulk insert (default: 1000)")
    parser.add_argument("--no-progress", action="store_true", help="Hide the progress bars")
    return parser


def install_stop_handler(cancel_event):
    """Sets `cancel_event` on SIGTERM so the job stops after the batch in flight."""

    def handle_stop(signum, frame):
        logger.warning("Stop requested, finishing the current batch...")
        cancel_event.set()

    signal.signal(signal.SIGTERM, handle_stop)


def main(argv=None):
    """
    Runs one sync job from environment configuration and command-line flags.

    Returns:
        int: Process exit status. 0 on success, 1 on failure, 130 when interrupted.
    """

    args = build_parser().parse_args(argv)

    try:
        job = SyncJob.from_env(
            source_uri=args.source_uri,
            target_uri=args.target_uri,
            source_database=args.source_db,
            target_database=args.target_db,
            collections=args.collections,
            batch_size=args.batch_size,
        )
    except ValueError as e:
        logger.error(f"❌ Invalid configuration: {e}")
        return EXIT_FAILURE

    cancel_event = threading.Event()
    install_stop_handler(cancel_event)

    try:
        results = synchronize(job, cancel_event=cancel_event, show_progress=not args.no_progress)
        logger.info(f"✅ {sum(results.values())} documents copied in {len(results)} collections.")
        return EXIT_OK

    except KeyboardInterrupt:
        logger.error("❌ Interrupted by user.")
        return EXIT_INTERRUPTED

    except SyncError as e:
        logger.error(f"❌ Error during processing: {e}")
        return EXIT_FAILURE

    finally:
        logger.info("🔄 Process finished.")
