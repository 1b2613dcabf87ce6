from __future__ import annotations

import unittest

from rowbound import Combinator, WhereMode
from rowbound.errors import UnknownColumn, UnknownTable
from rowbound.predicates import Condition, conditions, greater_than_clause, where_clause
from tests import regression_suite


class PredicateInputTests(unittest.TestCase):
    def test_mapping(self) -> None:
        self.assertEqual(conditions({"id": "1", "name": "Ann"}),
                         [Condition("id", "1"), Condition("name", "Ann")])

    def test_pairs_and_triples(self) -> None:
        parsed = conditions([("id", "1"), ("name", "Ann", False), ("active", "1", "and")])
        self.assertEqual(parsed, [Condition("id", "1", Combinator.And), Condition("name", "Ann", Combinator.Or),
                                  Condition("active", "1", Combinator.And)])

    def test_empty_inputs(self) -> None:
        self.assertEqual(conditions(None), [])
        self.assertEqual(conditions([]), [])
        self.assertEqual(conditions({}), [])

    def test_malformed_entries(self) -> None:
        with self.assertRaises(ValueError):
            conditions([("id",)])
        with self.assertRaises(ValueError):
            conditions([("id", "1", "XOR")])

    def test_entries_that_are_not_tuples(self) -> None:
        for predicate in [[42], ["id"], [("id", "1"), None], "id = 1", 42]:
            with self.subTest("Malformed predicate", predicate=predicate):
                with self.assertRaises(ValueError):
                    conditions(predicate)


class WhereClauseTests(regression_suite.StatementTestCase):
    def setUp(self) -> None:
        self.catalog = regression_suite.users_catalog()

    def test_empty_predicate(self) -> None:
        for predicate in [None, [], {}]:
            for mode in WhereMode:
                with self.subTest("Empty predicate", predicate=predicate, mode=mode):
                    clause = where_clause(self.catalog, "users", predicate, mode)
                    self.assertEqual(clause.text, "")
                    self.assertEqual(clause.parameters, ())
                    self.assertFalse(clause)

    def test_operator_selection(self) -> None:
        clause = where_clause(self.catalog, "users", [("id", "1"), ("name", "A%"), ("active", "true")])
        self.assertEqual(clause.text, "WHERE id = %s AND name LIKE %s AND active = %s")
        self.assertEqual(clause.parameters, ("1", "A%", 1))

    def test_all_and_counts(self) -> None:
        predicate = [("id", "1", Combinator.Or), ("name", "Ann", Combinator.Or), ("active", "0", Combinator.Or),
                     ("name", "Bob", Combinator.Or)]
        clause = where_clause(self.catalog, "users", predicate, WhereMode.AllAnd)
        tokens = clause.text.split()
        self.assertEqual(tokens.count("AND"), len(predicate) - 1)
        self.assertNotIn("OR", tokens)
        self.assertEqual(tokens.count("LIKE"), 2)
        self.assertEqual(tokens.count("="), 2)
        self.assertEqual(len(clause.parameters), len(predicate))

    def test_all_or(self) -> None:
        clause = where_clause(self.catalog, "users", [("id", "1"), ("id", "2")], WhereMode.AllOr)
        self.assertEqual(clause.text, "WHERE id = %s OR id = %s")

    def test_mixed_joiner_comes_from_successor(self) -> None:
        predicate = [("id", "1", Combinator.Or), ("name", "Ann", Combinator.And), ("active", "1", Combinator.Or)]
        clause = where_clause(self.catalog, "users", predicate, WhereMode.Mixed)
        self.assertEqual(clause.text, "WHERE id = %s AND name LIKE %s OR active = %s")

    def test_mixed_first_combinator_is_ignored(self) -> None:
        first = where_clause(self.catalog, "users", [("id", "1", True), ("id", "2", False)], WhereMode.Mixed)
        second = where_clause(self.catalog, "users", [("id", "1", False), ("id", "2", False)], WhereMode.Mixed)
        self.assertEqual(first, second)
        self.assertEqual(first.text, "WHERE id = %s OR id = %s")

    def test_placeholder(self) -> None:
        clause = where_clause(self.catalog, "users", {"id": "1"}, placeholder="?")
        self.assertEqual(clause.text, "WHERE id = ?")

    def test_unknown_references(self) -> None:
        with self.assertRaises(UnknownColumn):
            where_clause(self.catalog, "users", [("email", "a@b.c")])
        with self.assertRaises(UnknownTable):
            where_clause(self.catalog, "orders", [("id", "1")])


class GreaterThanClauseTests(unittest.TestCase):
    def setUp(self) -> None:
        self.catalog = regression_suite.users_catalog()

    def test_ignores_column_types(self) -> None:
        clause = greater_than_clause(self.catalog, "users", [("name", "M"), ("active", "true")])
        self.assertEqual(clause.text, "WHERE name > %s AND active > %s")
        self.assertEqual(clause.parameters, ("M", "true"))

    def test_columns_must_exist(self) -> None:
        with self.assertRaises(UnknownColumn):
            greater_than_clause(self.catalog, "users", [("age", "18")])

    def test_empty_predicate(self) -> None:
        self.assertFalse(greater_than_clause(self.catalog, "users", []))


if __name__ == "__main__":
    unittest.main()
