"""
rowspine — a small object-relational mapper.

Entity classes become tables, abstract repository contracts become working
repositories, and every call runs inside an explicit transaction::

    from rowspine import Repository, create_repository, transaction

    class PersonRepository(Repository[Person, int]):
        def find_by_name(self, name: str) -> Person | None: ...

    with transaction(data_source):
        create_repository(PersonRepository).save(Person(name="Ada"))
"""

__version__ = "0.1.0"

from rowspine.core import *  # noqa: E402,F403
from rowspine.core import __all__ as _core_all  # noqa: E402
from rowspine.core.transaction import transaction  # noqa: E402

__all__ = [*_core_all, "transaction", "__version__"]
