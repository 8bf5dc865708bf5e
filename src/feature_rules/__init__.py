"""
Feature Rules
==============
Declarative rule evaluation over discovered node features.

Decides whether a set of discovered features (flags, attributes and
repeated instance records) satisfies a matching rule, and reports
which features caused the match.
"""

__version__ = "0.1.0"
