"""
Unit tests for the Environment store and its constraints.
"""

import unittest

from optenv.options.constraints import (
    ImmutableKeyConstraint, MutuallyExclusiveKeyConstraint, NumericKeyConstraint,
    RequiresOtherKeyConstraint, StringFormatKeyConstraint
)
from optenv.options.environment import Environment
from optenv.options.errors import BadValue, InternalError, NoSuchKey
from optenv.options.value import OptionType, Value


def port(number):
    return Value(OptionType.INT, number)


class TestEnvironment(unittest.TestCase):
    """Test cases for Environment writes and reads."""

    def setUp(self):
        """Set up an empty environment."""
        self.env = Environment()

    def test_set_and_get(self):
        """Test a plain explicit write."""
        self.env.set("net.port", port(27018))

        self.assertEqual(self.env.get("net.port"), port(27018))
        self.assertIn("net.port", self.env)
        self.assertEqual(self.env.count("net.port"), 1)
        self.assertFalse(self.env.is_default("net.port"))

    def test_missing_key(self):
        """Test reading a key that was never set."""
        with self.assertRaises(NoSuchKey) as context:
            self.env.get("net.port")

        self.assertIsInstance(context.exception, KeyError)
        self.assertEqual(str(context.exception), "no such key: net.port")
        self.assertEqual(self.env.count("net.port"), 0)

    def test_duplicate_explicit_write(self):
        """Test that an explicit key cannot be set twice in one layer."""
        self.env.set("net.port", port(1))

        with self.assertRaises(BadValue) as context:
            self.env.set("net.port", port(2))

        self.assertIn("duplicate key: net.port", str(context.exception))
        self.assertEqual(self.env.get("net.port"), port(1))

    def test_explicit_overrides_default(self):
        """Test that an explicit write replaces a default."""
        self.env.set_default("net.port", port(27017))
        self.assertTrue(self.env.is_default("net.port"))

        self.env.set("net.port", port(27018))

        self.assertEqual(self.env.get("net.port"), port(27018))
        self.assertFalse(self.env.is_default("net.port"))

    def test_default_never_replaces_explicit(self):
        """Test that a later default keeps the explicit value."""
        self.env.set("net.port", port(27018))
        self.env.set_default("net.port", port(27017))

        self.assertEqual(self.env.get("net.port"), port(27018))
        self.assertFalse(self.env.is_default("net.port"))

    def test_set_all_layers_explicit_values(self):
        """Test layering one environment on top of another."""
        self.env.set_default("storage.dbPath", Value(OptionType.STRING, "/data/db"))
        self.env.set("net.port", port(27018))

        upper = Environment()
        upper.set("net.port", port(27019))
        upper.set_default("systemLog.verbosity", Value(OptionType.INT, 0))

        self.env.set_all(upper)

        self.assertEqual(self.env.get("net.port"), port(27019))
        self.assertFalse(self.env.is_default("net.port"))
        self.assertTrue(self.env.is_default("systemLog.verbosity"))
        self.assertTrue(self.env.is_default("storage.dbPath"))

    def test_insertion_order(self):
        """Test that iteration follows first insertion."""
        self.env.set("b", port(1))
        self.env.set_default("a", port(2))
        self.env.set("c", port(3))

        self.assertEqual(self.env.keys(), ["b", "a", "c"])
        self.assertEqual(list(self.env), ["b", "a", "c"])
        self.assertEqual(len(self.env), 3)
        self.assertEqual(self.env.to_dict(), {"b": 1, "a": 2, "c": 3})

    def test_invalid_entries(self):
        """Test malformed keys and values."""
        with self.assertRaises(BadValue):
            self.env.set("", port(1))
        with self.assertRaises(InternalError):
            self.env.set("net.port", 27017)
        with self.assertRaises(InternalError):
            self.env.add_constraint("not a constraint")

    def test_equality(self):
        """Test that equality covers values and default markers."""
        other = Environment()
        self.env.set("net.port", port(1))
        other.set("net.port", port(1))
        self.assertEqual(self.env, other)

        other.set_default("storage.dbPath", Value(OptionType.STRING, "/data/db"))
        self.assertNotEqual(self.env, other)


class TestEnvironmentValidation(unittest.TestCase):
    """Test cases for constraints attached to an Environment."""

    def setUp(self):
        """Set up an environment with a ranged port."""
        self.env = Environment()
        self.env.set_default("net.port", port(27017))
        self.env.add_constraint(NumericKeyConstraint("net.port", 0, 65535))

    def test_constraints_deferred_until_validate(self):
        """Test that attaching constraints does not check them."""
        self.env.set("net.port", port(70000))

        self.assertFalse(self.env.is_valid)
        with self.assertRaises(BadValue) as context:
            self.env.validate()
        self.assertIn("net.port must be between 0 and 65535", str(context.exception))
        self.assertFalse(self.env.is_valid)

    def test_validate_passes(self):
        """Test validating a conforming environment."""
        self.env.validate()

        self.assertTrue(self.env.is_valid)
        self.assertEqual(len(self.env.constraints), 1)

    def test_write_after_validate_rolls_back(self):
        """Test that a failing write on a validated environment is undone."""
        self.env.validate()

        with self.assertRaises(BadValue):
            self.env.set("net.port", port(70000))

        self.assertEqual(self.env.get("net.port"), port(27017))
        self.assertTrue(self.env.is_default("net.port"))

    def test_set_all_after_validate_rolls_back(self):
        """Test that a failing layered write is undone as a whole."""
        self.env.validate()
        upper = Environment()
        upper.set("storage.dbPath", Value(OptionType.STRING, "/srv"))
        upper.set("net.port", port(-1))

        with self.assertRaises(BadValue):
            self.env.set_all(upper)

        self.assertNotIn("storage.dbPath", self.env)
        self.assertEqual(self.env.get("net.port"), port(27017))

    def test_constraint_skipped_for_absent_key(self):
        """Test that key constraints ignore unset keys."""
        env = Environment()
        env.add_constraint(NumericKeyConstraint("net.port", 0, 10))

        env.validate()

        self.assertTrue(env.is_valid)


class TestConstraints(unittest.TestCase):
    """Test cases for the individual constraint rules."""

    def test_numeric_rejects_non_numeric(self):
        env = Environment()
        env.set("net.port", Value(OptionType.STRING, "27017"))
        env.add_constraint(NumericKeyConstraint("net.port", 0, 65535))

        with self.assertRaises(BadValue):
            env.validate()

    def test_numeric_double_range(self):
        env = Environment()
        env.set("storage.syncPeriodSecs", Value(OptionType.DOUBLE, 0.5))
        env.add_constraint(NumericKeyConstraint("storage.syncPeriodSecs", 0.0, 9.0))

        env.validate()

    def test_mutually_exclusive(self):
        env = Environment()
        env.set("net.bindIp", Value(OptionType.STRING, "127.0.0.1"))
        env.set("net.bindIpAll", Value(OptionType.SWITCH, True))
        env.add_constraint(MutuallyExclusiveKeyConstraint("net.bindIp", "net.bindIpAll"))

        with self.assertRaises(BadValue) as context:
            env.validate()

        self.assertEqual(str(context.exception),
                         "net.bindIp is not allowed when net.bindIpAll is specified")

    def test_requires_other(self):
        env = Environment()
        env.set("storage.repairPath", Value(OptionType.STRING, "/repair"))
        env.add_constraint(RequiresOtherKeyConstraint("storage.repairPath", "storage.dbPath"))

        with self.assertRaises(BadValue) as context:
            env.validate()
        self.assertEqual(str(context.exception),
                         "storage.repairPath requires storage.dbPath to be specified")

        env.set("storage.dbPath", Value(OptionType.STRING, "/data/db"))
        env.validate()

    def test_string_format(self):
        env = Environment()
        env.set("net.bindIp", Value(OptionType.STRING, "localhost with spaces"))
        env.add_constraint(StringFormatKeyConstraint("net.bindIp", r"[^ ]+", "host[,host...]"))

        with self.assertRaises(BadValue) as context:
            env.validate()

        self.assertIn("host[,host...]", str(context.exception))

    def test_string_format_invalid_regex(self):
        with self.assertRaises(BadValue):
            StringFormatKeyConstraint("net.bindIp", "[", "host")

    def test_immutable(self):
        env = Environment()
        env.set("storage.engine", Value(OptionType.STRING, "wiredTiger"))
        env.add_constraint(ImmutableKeyConstraint("storage.engine"))
        env.validate()

        override = Environment()
        override.set("storage.engine", Value(OptionType.STRING, "inMemory"))
        with self.assertRaises(BadValue):
            env.set_all(override)

        self.assertEqual(env.get("storage.engine").as_string(), "wiredTiger")

    def test_immutable_compares_against_own_environment(self):
        """Test that one constraint shared by two environments keeps no value of its own."""
        constraint = ImmutableKeyConstraint("storage.engine")
        first = Environment()
        first.set("storage.engine", Value(OptionType.STRING, "wiredTiger"))
        first.add_constraint(constraint)
        second = Environment()
        second.set("storage.engine", Value(OptionType.STRING, "inMemory"))
        second.add_constraint(constraint)

        first.validate()
        second.validate()

        self.assertEqual(first.validated_value("storage.engine").as_string(), "wiredTiger")
        self.assertEqual(second.validated_value("storage.engine").as_string(), "inMemory")

    def test_immutable_not_recorded_by_failed_validation(self):
        env = Environment()
        env.set("storage.engine", Value(OptionType.STRING, "wiredTiger"))
        env.add_constraint(ImmutableKeyConstraint("storage.engine"))
        env.add_constraint(RequiresOtherKeyConstraint("storage.engine", "storage.dbPath"))

        with self.assertRaises(BadValue):
            env.validate()

        self.assertIsNone(env.validated_value("storage.engine"))
        self.assertFalse(env.is_valid)

    def test_default_after_validate_rolls_back(self):
        """Test that set_default is re-checked like explicit writes."""
        env = Environment()
        env.add_constraint(NumericKeyConstraint("net.port", 0, 65535))
        env.validate()

        with self.assertRaises(BadValue):
            env.set_default("net.port", port(70000))

        self.assertNotIn("net.port", env)
        env.set("net.port", port(27018))
        self.assertEqual(env.get("net.port").as_int(), 27018)


if __name__ == '__main__':
    unittest.main()
