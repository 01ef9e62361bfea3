# gguf_info/__main__.py
import sys

from gguf_info.cli import main

sys.exit(main())
