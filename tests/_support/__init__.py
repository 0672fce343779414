"""
Test support package for rowspine tests.

Holds sample entity classes and repository contracts shared by several
test modules. They are defined at module level so that their annotations
resolve through ``typing.get_type_hints``.
"""
