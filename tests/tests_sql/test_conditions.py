"""
=================================================
Pytest suite for sql/conditions.py
=================================================

Sections:
---------
1. Unit tests - ConditionNode, BindingTable
2. Compiler tests - pure-AND fast path and AND/OR grouping
3. Edge case tests - empty sequences, OR-first sequences

How to Execute:
---------------
All tests:          pytest tests/tests_sql/test_conditions.py -v
By category:        pytest tests/tests_sql/test_conditions.py -m unit
"""

import dataclasses

import pytest

from sql.conditions import AND, OR, BindingTable, ConditionNode, compile_conditions, compile_where
from sql.exceptions import QueryBuilderError


def leaf(text, connective=AND):
    return ConditionNode(connective, text)


def group(text, connective=OR):
    return ConditionNode(connective, text, is_group=True)


# ===============
# 1. UNIT TESTS
# ===============

@pytest.mark.unit
def test_condition_node_is_immutable():
    node = leaf('`a` = :w1')

    with pytest.raises(dataclasses.FrozenInstanceError):
        node.text = '`b` = :w2'


@pytest.mark.unit
def test_binding_table_allocates_sequential_prefixed_names():
    table = BindingTable()

    assert table.allocate('w', 1) == 'w1'
    assert table.allocate('in', 2) == 'in2'
    assert table.allocate('w', 3) == 'w3'
    assert table.as_dict() == {'w1': 1, 'in2': 2, 'w3': 3}


@pytest.mark.unit
def test_binding_table_next_name_advances_counter_without_storing():
    table = BindingTable()

    assert table.next_name('u') == 'u1'
    assert table.allocate('w', 'x') == 'w2'
    assert len(table) == 1
    assert 'u1' not in table


@pytest.mark.unit
def test_binding_table_merge_keeps_caller_names():
    table = BindingTable()
    table.allocate('w', 1)

    table.merge({'status': 'active', ':min': 3})

    assert table.as_dict() == {'w1': 1, 'status': 'active', 'min': 3}


@pytest.mark.edge_case
def test_generated_names_skip_caller_bound_names():
    table = BindingTable()
    table.merge({'w1': 40})

    assert table.allocate('w', 'admin') == 'w2'
    assert table.as_dict() == {'w1': 40, 'w2': 'admin'}


@pytest.mark.edge_case
def test_merge_rejects_rebinding_a_name_to_another_value():
    table = BindingTable()
    table.allocate('w', 1)
    table.merge({'w1': 1})

    with pytest.raises(QueryBuilderError):
        table.merge({'w1': 2})

    assert table.as_dict() == {'w1': 1}


@pytest.mark.unit
def test_binding_table_as_dict_is_a_copy():
    table = BindingTable()
    table.allocate('w', 1)

    snapshot = table.as_dict()
    snapshot['w1'] = 99

    assert table.as_dict() == {'w1': 1}


# ==================
# 2. COMPILER TESTS
# ==================

@pytest.mark.unit
def test_pure_and_sequence_has_no_parentheses():
    nodes = [leaf('c1'), leaf('c2'), leaf('c3')]

    assert compile_where(nodes) == ' WHERE c1 AND c2 AND c3'


@pytest.mark.unit
def test_and_groups_inside_pure_and_are_kept_verbatim():
    nodes = [leaf('c1'), group('(c2 OR c3)', AND)]

    assert compile_conditions(nodes) == 'c1 AND (c2 OR c3)'


@pytest.mark.unit
def test_and_run_before_or_is_parenthesised():
    nodes = [leaf('c1'), leaf('c2'), group('(c3 AND c4)')]

    assert compile_conditions(nodes) == '(c1 AND c2) OR (c3 AND c4)'


@pytest.mark.unit
def test_single_and_member_is_not_wrapped():
    nodes = [leaf('c1'), group('(c2)')]

    assert compile_where(nodes) == ' WHERE c1 OR (c2)'


@pytest.mark.unit
def test_source_order_is_preserved_across_runs():
    nodes = [leaf('c1'), group('(c2)'), leaf('c3'), leaf('c4'), group('(c5)')]

    assert compile_conditions(nodes) == 'c1 OR (c2) AND (c3 AND c4) OR (c5)'


@pytest.mark.unit
def test_consecutive_or_groups_each_get_their_connective():
    nodes = [leaf('c1'), group('(c2)'), group('(c3)')]

    assert compile_conditions(nodes) == 'c1 OR (c2) OR (c3)'


# ===================
# 3. EDGE CASE TESTS
# ===================

@pytest.mark.edge_case
def test_empty_sequence_compiles_to_empty_string():
    assert compile_conditions([]) == ''
    assert compile_where([]) == ''


@pytest.mark.edge_case
def test_or_group_first_has_no_leading_keyword():
    nodes = [group('(c1)'), leaf('c2'), leaf('c3')]

    assert compile_conditions(nodes) == '(c1) AND (c2 AND c3)'


@pytest.mark.edge_case
def test_compile_accepts_any_iterable():
    nodes = (n for n in [leaf('c1'), leaf('c2')])

    assert compile_where(nodes) == ' WHERE c1 AND c2'
