# -*- coding: utf-8 -*-

"""
Main entry point for launching the AST Outline application.
"""

from ast_outline.app import main

if __name__ == '__main__':
    main()
