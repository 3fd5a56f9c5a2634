"""
build-spine: build-pipeline orchestrator for browser component libraries.

Tasks are composed into targets with ``series`` and ``parallel``; the
``pipeline`` package defines the build, lint and development targets of a
component library (script bundle, stylesheet, standalone bundle), and the
CLI runs them::

    buildspine run build --skip-standalone
    buildspine run develop
"""

__version__ = "0.1.0"
