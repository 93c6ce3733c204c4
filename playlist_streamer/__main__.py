import sys

from playlist_streamer.cli import main

sys.exit(main())
