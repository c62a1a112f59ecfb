"""
List Variants

Recursive structures built from the core containers:
- cons:    immutable, tails shared through Rc
- mutable: shared mutable values through Rc[RefCell[int]]
- cyclic:  rewritable links, able to form leaking cycles
"""

from .cons import Nil, Cons, ConsList, cons_list, prepend, iter_values
from .mutable import MutCons, MutList, shared_value, mut_cons, mut_values
from .cyclic import CycCons, CycList, cyc_cons, link, walk, build_cycle

__all__ = [
    'Nil', 'Cons', 'ConsList', 'cons_list', 'prepend', 'iter_values',
    'MutCons', 'MutList', 'shared_value', 'mut_cons', 'mut_values',
    'CycCons', 'CycList', 'cyc_cons', 'link', 'walk', 'build_cycle',
]
