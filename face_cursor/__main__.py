import sys

from face_cursor.core.core import main

sys.exit(main())
