##################################################################################################
#                                        SCRIPT OVERVIEW                                         #
#                                                                                                #
# Runnable wrapper around `mongosync.sync_collections`, for use from a source checkout:          #
#                                                                                                #
#     python -m scripts.sync_collections --source-db SOURCE_DATABASE                             #
#                                                                                                #
# Once the project is installed the same entry point is available as the `mongosync` command.   #
# Configuration is read from .env / environment variables, see `mongosync/sync_collections.py`. #
##################################################################################################

##################################################################################################
#                                            IMPORTS                                             #
##################################################################################################

import sys

from mongosync.sync_collections import main                         # Command-line entry point

##################################################################################################
#                                               MAIN                                             #
##################################################################################################

if __name__ == "__main__":
    sys.exit(main())
