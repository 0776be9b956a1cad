"""
Unit tests for the YAML config file source adapter.
"""

import textwrap
import unittest

from optenv.options.environment import Environment
from optenv.options.errors import BadValue
from optenv.options.section import OptionSection
from optenv.options.value import OptionType, Value
from optenv.options.yaml_config import (
    compose_yaml_config, environment_to_yaml, is_yaml_config, parse_yaml_config
)

from tests.unit.fixtures import build_server_section


def dedent(text):
    return textwrap.dedent(text).lstrip("\n")


class TestParseYamlConfig(unittest.TestCase):
    """Test cases for parse_yaml_config."""

    def setUp(self):
        """Set up the shared server option schema."""
        self.section = build_server_section()

    def parse(self, text):
        return parse_yaml_config(self.section, dedent(text))

    def test_nested_mappings_build_dotted_keys(self):
        env = self.parse("""
            net:
              port: 27018
              bindIp: 127.0.0.1
            storage:
              dbPath: /srv/db
              quota:
                maxFilesPerDB: 8
        """)

        self.assertEqual(env.get("net.port"), Value(OptionType.INT, 27018))
        self.assertEqual(env.get("net.bindIp"), Value(OptionType.STRING, "127.0.0.1"))
        self.assertEqual(env.get("storage.dbPath"), Value(OptionType.STRING, "/srv/db"))
        self.assertEqual(env.get("storage.quota.maxFilesPerDB"), Value(OptionType.LONG, 8))
        self.assertEqual(env.keys(), ["net.port", "net.bindIp", "storage.dbPath",
                                      "storage.quota.maxFilesPerDB"])

    def test_dotted_top_level_key(self):
        env = self.parse("net.port: 27018\n")

        self.assertEqual(env.get("net.port").as_int(), 27018)

    def test_value_field_names_parent_key(self):
        """Test that a 'value' field supplies the enclosing key's value."""
        env = self.parse("""
            systemLog:
              verbosity:
                value: 2
        """)

        self.assertEqual(env.get("systemLog.verbosity"), Value(OptionType.INT, 2))

    def test_duplicate_between_nested_and_dotted(self):
        with self.assertRaises(BadValue) as context:
            self.parse("""
                net:
                  port: 1
                net.port: 2
            """)

        self.assertIn("duplicate key: net.port", str(context.exception))

    def test_duplicate_literal_key(self):
        with self.assertRaises(BadValue):
            self.parse("auth: true\nauth: true\n")

    def test_blank_documents(self):
        """Test that empty documents yield an empty environment."""
        for text in ("", "# only a comment\n", "~\n", "---\n"):
            with self.subTest(text=text):
                self.assertEqual(len(parse_yaml_config(self.section, text)), 0)

    def test_non_mapping_root(self):
        for text in ("- a\n- b\n", "port = 27017\n"):
            with self.subTest(text=text):
                with self.assertRaises(BadValue) as context:
                    parse_yaml_config(self.section, text)
                self.assertIn("No map found at top level of YAML config", str(context.exception))

    def test_unknown_key(self):
        with self.assertRaises(BadValue) as context:
            self.parse("net:\n  nosuchoption: 1\n")

        self.assertIn("Unrecognized option: net.nosuchoption", str(context.exception))

    def test_command_line_only_key(self):
        with self.assertRaises(BadValue):
            self.parse("config: /etc/other.conf\n")

    def test_yaml_only_key(self):
        env = self.parse("security:\n  authorization: enabled\n")

        self.assertEqual(env.get("security.authorization").as_string(), "enabled")

    def test_string_vector(self):
        env = self.parse("""
            setParameter:
              - a=1
              - b=2
        """)

        self.assertEqual(env.get("setParameter").as_string_vector(), ["a=1", "b=2"])

    def test_string_vector_requires_list(self):
        for text in ("setParameter: a=1\n", "setParameter:\n  a: 1\n"):
            with self.subTest(text=text):
                with self.assertRaises(BadValue) as context:
                    self.parse(text)
                self.assertIn("is not a list type", str(context.exception))

    def test_string_vector_through_value_field(self):
        env = self.parse("""
            setParameter:
              value:
                - a=1
        """)

        self.assertEqual(env.get("setParameter").as_string_vector(), ["a=1"])

    def test_nested_lists_rejected(self):
        with self.assertRaises(BadValue) as context:
            self.parse("setParameter:\n  - [a, b]\n")

        self.assertIn("nested lists", str(context.exception))

    def test_list_for_scalar_rejected(self):
        with self.assertRaises(BadValue):
            self.parse("net:\n  port: [1, 2]\n")

    def test_null_leaf_rejected(self):
        with self.assertRaises(BadValue) as context:
            self.parse("net:\n  bindIp:\n")

        self.assertIn("has no value", str(context.exception))

    def test_boolean_literals(self):
        self.assertEqual(self.parse("auth: true\n").get("auth"), Value(OptionType.BOOL, True))
        self.assertEqual(self.parse("processManagement:\n  fork: true\n").get("processManagement.fork"),
                         Value(OptionType.SWITCH, True))

    def test_false_literal_is_recognised(self):
        """
        Test that ``false`` sets a boolean option to False.

        Earlier releases only recognised ``true`` and rejected every other
        literal, so ``auth: false`` used to fail. A switch set to false is
        left unset, as it is on the command line and in INI files.
        """
        self.assertEqual(self.parse("auth: false\n").get("auth"), Value(OptionType.BOOL, False))
        self.assertNotIn("processManagement.fork", self.parse("processManagement:\n  fork: false\n"))

    def test_false_switch_still_counts_as_duplicate(self):
        with self.assertRaises(BadValue) as context:
            self.parse("processManagement:\n  fork: false\nprocessManagement.fork: true\n")

        self.assertIn("duplicate key: processManagement.fork", str(context.exception))

    def test_recursive_alias_rejected(self):
        with self.assertRaises(BadValue) as context:
            self.parse("net: &net\n  x: *net\n")

        self.assertIn("Recursive alias", str(context.exception))

    def test_shared_alias_allowed(self):
        """Test that an anchor reused in separate places is not treated as a cycle."""
        section = OptionSection()
        section.add_option("a.port", "aport", OptionType.INT)
        section.add_option("b.port", "bport", OptionType.INT)

        env = parse_yaml_config(section, "a: &common\n  port: 1\nb: *common\n")

        self.assertEqual(env.get("a.port").as_int(), 1)
        self.assertEqual(env.get("b.port").as_int(), 1)

    def test_other_boolean_spellings_rejected(self):
        for text in ("auth: yes\n", "auth: True\n", "auth: 1\n"):
            with self.subTest(text=text):
                with self.assertRaises(BadValue) as context:
                    self.parse(text)
                self.assertIn("Expected boolean", str(context.exception))

    def test_scalars_keep_raw_text(self):
        """Test that strings are not reinterpreted by YAML typing."""
        env = self.parse("net:\n  bindIp: 0127\nstorage:\n  dbPath: 'true'\n")

        self.assertEqual(env.get("net.bindIp").as_string(), "0127")
        self.assertEqual(env.get("storage.dbPath").as_string(), "true")

    def test_numbers(self):
        env = self.parse("""
            storage:
              syncPeriodSecs: 1.5
              journal:
                commitIntervalMs: 18446744073709551615
        """)

        self.assertEqual(env.get("storage.syncPeriodSecs").as_double(), 1.5)
        self.assertEqual(env.get("storage.journal.commitIntervalMs").as_unsigned_long_long(), 2 ** 64 - 1)

    def test_number_out_of_range(self):
        with self.assertRaises(BadValue):
            self.parse("net:\n  port: 4294967296\n")

    def test_syntax_error(self):
        with self.assertRaises(BadValue) as context:
            self.parse("net: [1, 2\n")

        self.assertIn("Error parsing YAML config file", str(context.exception))


class TestYamlDetection(unittest.TestCase):
    """Test cases for telling YAML documents from INI text."""

    def test_detection(self):
        self.assertTrue(is_yaml_config(compose_yaml_config("net:\n  port: 1\n")))
        self.assertTrue(is_yaml_config(compose_yaml_config("")))
        self.assertTrue(is_yaml_config(compose_yaml_config("- a\n")))
        self.assertFalse(is_yaml_config(compose_yaml_config("port = 27017\nfork = true\n")))


class TestEnvironmentToYaml(unittest.TestCase):
    """Test cases for environment_to_yaml."""

    def setUp(self):
        """Set up the shared server option schema."""
        self.section = build_server_section()

    def test_empty_environment(self):
        self.assertEqual(environment_to_yaml(Environment()), "")

    def test_round_trip(self):
        """Test that a dumped environment parses back to the same values."""
        env = Environment()
        env.set("net.port", Value(OptionType.INT, 27018))
        env.set("net.bindIp", Value(OptionType.STRING, "true"))
        env.set("net.maxIncomingConnections", Value(OptionType.UNSIGNED, 100))
        env.set("storage.syncPeriodSecs", Value(OptionType.DOUBLE, 1.5))
        env.set("storage.quota.maxFilesPerDB", Value(OptionType.LONG, -3))
        env.set("processManagement.fork", Value(OptionType.SWITCH, True))
        env.set("auth", Value(OptionType.BOOL, False))
        env.set("setParameter", Value(OptionType.STRING_VECTOR, ["a=1", "b=2"]))

        parsed = parse_yaml_config(self.section, environment_to_yaml(env))

        self.assertEqual(parsed.to_dict(), env.to_dict())
        for key, value in env.items():
            self.assertEqual(parsed.get(key), value)

    def test_parent_and_child_keys(self):
        """Test a key that is both a value and a parent."""
        section = OptionSection()
        section.add_option("systemLog", "systemLog", OptionType.STRING)
        section.add_option("systemLog.verbosity", "verbosity", OptionType.INT)
        env = Environment()
        env.set("systemLog", Value(OptionType.STRING, "file"))
        env.set("systemLog.verbosity", Value(OptionType.INT, 2))

        document = environment_to_yaml(env)
        parsed = parse_yaml_config(section, document)

        self.assertIn("value: file", document)
        self.assertEqual(parsed.get("systemLog").as_string(), "file")
        self.assertEqual(parsed.get("systemLog.verbosity").as_int(), 2)


if __name__ == '__main__':
    unittest.main()
