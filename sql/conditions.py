"""
==================================
WHERE condition tree and bindings.
==================================

Data model and compiler for the WHERE portion of a statement.

Every where*/or_where* call on a QueryBuilder produces one ConditionNode.
Nodes never carry literal values: a value is stored in the BindingTable under
a generated name and the node text references it as ``:name``.

Compilation rules (compile_conditions):
    1. No OR node: join every node with " AND ", no extra parentheses.
    2. Otherwise consecutive AND nodes form one group and every OR node is
       a group on its own. Order is never changed.
    3. A group with more than one member is parenthesised. OR nodes are
       already parenthesised by the call that produced them.
    4. Groups after the first are prefixed by their connective.

Example:
    >>> nodes = [
    ...     ConditionNode(AND, '`a` = :w1'),
    ...     ConditionNode(AND, '`b` = :w2'),
    ...     ConditionNode(OR, '(`c` = :w3)', is_group=True),
    ... ]
    >>> compile_where(nodes)
    ' WHERE (`a` = :w1 AND `b` = :w2) OR (`c` = :w3)'
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from sql.exceptions import QueryBuilderError

AND = 'AND'
OR = 'OR'
CONNECTIVES = (AND, OR)


@dataclass(frozen=True)
class ConditionNode:
    """One leaf or group condition.

    Attributes:
        connective: AND or OR, joining this node to its predecessor
        text: SQL fragment referencing bound values by placeholder only
        is_group: True if text is a parenthesised sub-expression
    """

    connective: str
    text: str
    is_group: bool = False


class BindingTable:
    """Append-only mapping of generated parameter names to values.

    Names come from a single monotonic counter, so they stay unique for the
    lifetime of the table even when nested builders allocate through it.
    The prefix only makes the SQL easier to read.

    Example:
        >>> table = BindingTable()
        >>> table.allocate('w', 10)
        'w1'
        >>> table.allocate('in', 'x')
        'in2'
    """

    def __init__(self):
        self._values: Dict[str, Any] = {}
        self._counter = 0

    def next_name(self, prefix: str) -> str:
        """Next counter-based name not already taken by a caller binding."""
        self._counter += 1
        name = f"{prefix}{self._counter}"
        while name in self._values:
            self._counter += 1
            name = f"{prefix}{self._counter}"
        return name

    def allocate(self, prefix: str, value: Any) -> str:
        """Store value under a fresh name and return the name."""
        name = self.next_name(prefix)
        self._values[name] = value
        return name

    def merge(self, bindings: Mapping[str, Any]) -> None:
        """Add caller-named bindings as-is (raw conditions).

        Raises:
            QueryBuilderError: If a name is already bound to a different value
        """
        for name, value in bindings.items():
            name = str(name).lstrip(':')
            if name in self._values and self._values[name] != value:
                raise QueryBuilderError(f"Binding :{name} is already bound to another value")
            self._values[name] = value

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __repr__(self) -> str:
        return f"BindingTable({self._values!r})"


def _group_runs(nodes: Sequence[ConditionNode]) -> List[tuple]:
    """Split nodes into (connective, [texts]) runs."""
    groups = []
    current: List[str] = []
    for node in nodes:
        if node.connective == OR:
            if current:
                groups.append((AND, current))
                current = []
            groups.append((OR, [node.text]))
        else:
            current.append(node.text)
    if current:
        groups.append((AND, current))
    return groups


def compile_conditions(nodes: Iterable[ConditionNode]) -> str:
    """Compile an ordered node sequence into a boolean SQL fragment.

    Args:
        nodes: Condition nodes in the order they were chained

    Returns:
        SQL fragment without the WHERE keyword ('' when nodes is empty)
    """
    nodes = list(nodes)
    if not nodes:
        return ''

    if all(node.connective != OR for node in nodes):
        return ' AND '.join(node.text for node in nodes)

    parts = []
    for index, (connective, texts) in enumerate(_group_runs(nodes)):
        group_sql = ' AND '.join(texts)
        if len(texts) > 1:
            group_sql = f"({group_sql})"
        parts.append(group_sql if index == 0 else f"{connective} {group_sql}")
    return ' '.join(parts)


def compile_where(nodes: Iterable[ConditionNode]) -> str:
    """Compile nodes into a ' WHERE ...' clause, or '' if there are none."""
    fragment = compile_conditions(nodes)
    return f" WHERE {fragment}" if fragment else ''
