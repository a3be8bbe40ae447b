#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Compiler Command-Line Analyzer

This script reads compile_commands.json files and reports, for each source
file, the compiler that builds it, the include paths and preprocessor macros
given on its command line, and the arguments that change the compiler's
built-in macros and include paths.

Usage as CLI:
    python -m compiler_cmdline.main build/compile_commands.json --stats

Usage as library:
    import compiler_cmdline
    outcome, result = compiler_cmdline.parse_command("/usr/bin/g++ -DFOO=1 -c a.cpp", "/build")
    print(outcome.tool_name, result.macros)

License:
    GPL-3.0-or-later
"""

import sys
from compiler_cmdline import cli

if __name__ == "__main__":
    sys.exit(cli.main())
