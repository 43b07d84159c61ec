##################################################################################################
#                                        OVERVIEW                                                #
#                                                                                                #
# Errors raised by the sync engine. Every failure that aborts a job is a `SyncError`, so the     #
# caller can catch one type. The original pymongo exception is always chained as `__cause__`.    #
##################################################################################################


class SyncError(Exception):
    """Base class for every error that aborts a sync job."""

    def __init__(self, message, collection=None):
        super().__init__(message)
        self.collection = collection


class SyncConnectionError(SyncError):
    """The source or destination server could not be reached."""


class ProvisionError(SyncError):
    """A destination collection could not be checked or created."""


class ReadError(SyncError):
    """Reading from the source collection failed mid-stream."""


class WriteError(SyncError):
    """A bulk insert into the destination collection failed."""


class SyncCancelled(SyncError):
    """The job was cancelled between two batches."""
