"""
YAML config file source adapter.

The document is composed into PyYAML's node graph (mapping, sequence and
scalar nodes) rather than loaded into Python objects, so that scalars keep
their raw text for the shared coercion and duplicate keys stay visible.

Nested mappings build dotted keys: ``net: {port: 1}`` sets ``net.port``. A
mapping key named ``value`` does not add a segment, it supplies the value of
the enclosing key, which allows shapes such as::

    systemLog:
      verbosity:
        value: 2
"""

from typing import Dict, List, Optional, Set

import yaml
from yaml.nodes import MappingNode, Node, ScalarNode, SequenceNode

from .environment import Environment
from .errors import BadValue
from .section import OptionDescription, OptionSection, OptionSource
from .value import BOOLEAN_TYPES, OptionType, Value, coerce_raw_value
from ..utils.helpers import nest_dotted_keys
from ..utils.logger import get_logger

logger = get_logger(__name__)

VALUE_FIELD = "value"
NULL_TAG = "tag:yaml.org,2002:null"


def compose_yaml_config(config_text: str) -> Optional[Node]:
    """
    Parse YAML text into a node graph.

    Returns:
        Root node, or None for an empty document

    Raises:
        BadValue: If the text is not valid YAML
    """
    try:
        return yaml.compose(config_text, Loader=yaml.SafeLoader)
    except yaml.YAMLError as e:
        raise BadValue(f"Error parsing YAML config file: {e}") from e


def is_yaml_config(root: Optional[Node]) -> bool:
    """
    Decide whether a parsed document really is YAML.

    YAML accepts almost anything as a plain scalar, so an INI file such as
    ``port = 27017`` parses as one big string. A bare non-null scalar root
    therefore means the file is INI.
    """
    return not (isinstance(root, ScalarNode) and not _is_null(root))


def parse_yaml_config(options: OptionSection, config_text: str) -> Environment:
    """
    Parse YAML config text into a fresh Environment.

    Args:
        options: Option schema
        config_text: Full contents of the config file

    Returns:
        Environment holding every option set in the document; empty for a
        blank document

    Raises:
        BadValue: On syntax errors, a non-mapping root, unknown or duplicate
            keys and values that do not fit the declared type
    """
    environment = Environment()
    add_yaml_nodes_to_environment(compose_yaml_config(config_text), options, environment)
    logger.debug(f"Parsed {len(environment)} options from YAML config")
    return environment


def add_yaml_nodes_to_environment(root: Optional[Node], options: OptionSection,
                                  environment: Environment) -> None:
    """Walk a composed document and store every leaf under its dotted key."""
    registered = {option.dotted_name: option
                  for option in options.get_options_for_source(OptionSource.YAML_CONFIG)}
    _add_nodes(root, registered, "", environment, set(), set())


def _add_nodes(node: Optional[Node], registered: Dict[str, OptionDescription],
               parent_path: str, environment: Environment,
               visiting: Set[int], seen_keys: Set[str]) -> None:
    if _is_null(node):
        return
    if not isinstance(node, MappingNode):
        raise BadValue("No map found at top level of YAML config")
    if id(node) in visiting:
        raise BadValue(f"Recursive alias found in YAML config under: {parent_path or '<root>'}")
    visiting.add(id(node))

    for key_node, value_node in node.value:
        if not isinstance(key_node, ScalarNode):
            raise BadValue(f"Non-scalar key found in YAML config under: {parent_path or '<root>'}")
        field_name = key_node.value
        if not parent_path:
            dotted_name = field_name
        elif field_name == VALUE_FIELD:
            dotted_name = parent_path
        else:
            dotted_name = f"{parent_path}.{field_name}"

        if isinstance(value_node, MappingNode):
            option = registered.get(dotted_name)
            if (option is not None and option.option_type is OptionType.STRING_VECTOR
                    and not _has_value_field(value_node)):
                raise BadValue(
                    f"Option: {dotted_name} is of type StringVector, but value in YAML config "
                    f"is not a list type"
                )
            _add_nodes(value_node, registered, dotted_name, environment, visiting, seen_keys)
            continue

        value = yaml_node_to_value(value_node, registered, dotted_name)
        if dotted_name in seen_keys:
            raise BadValue(f"Error parsing YAML config: duplicate key: {dotted_name}")
        seen_keys.add(dotted_name)
        if value.type is OptionType.SWITCH and not value.as_bool():
            continue
        environment.set(dotted_name, value)

    visiting.discard(id(node))


def yaml_node_to_value(node: Node, registered: Dict[str, OptionDescription], key: str) -> Value:
    """
    Convert a leaf node to a Value of the option's declared type.

    Raises:
        BadValue: If the key is not registered for YAML or the node does not
            fit the declared type
    """
    option = registered.get(key)
    if option is None:
        raise BadValue(f"Unrecognized option: {key}")

    if option.option_type is OptionType.STRING_VECTOR:
        if not isinstance(node, SequenceNode):
            raise BadValue(
                f"Option: {key} is of type StringVector, but value in YAML config is not a list type"
            )
        items: List[str] = []
        for item in node.value:
            if isinstance(item, SequenceNode):
                raise BadValue(f"Option: {key} has nested lists, which is not allowed")
            if not isinstance(item, ScalarNode):
                raise BadValue(f"Option: {key} has a list element that is not a scalar")
            items.append(item.value)
        return Value(OptionType.STRING_VECTOR, items)

    if isinstance(node, SequenceNode):
        raise BadValue(
            f"Option: {key} is of type {option.option_type.value}, but value in YAML config is a list"
        )
    if _is_null(node):
        raise BadValue(f"Option: {key} has no value in YAML config")

    text = node.value
    if option.option_type in BOOLEAN_TYPES:
        if text == "true":
            return Value(option.option_type, True)
        if text == "false":
            return Value(option.option_type, False)
        raise BadValue(f"Expected boolean but found string: {text} for option: {key}")
    return coerce_raw_value(text, option.option_type, key)


def environment_to_yaml(environment: Environment) -> str:
    """
    Serialize an Environment as a nested YAML document.

    A key that is both a value and a parent of other keys is written with a
    ``value`` field, so the document parses back to the same typed values.
    """
    nested = nest_dotted_keys(environment.to_dict(), VALUE_FIELD)
    if not nested:
        return ""
    return yaml.safe_dump(nested, sort_keys=False, default_flow_style=False)


def _is_null(node: Optional[Node]) -> bool:
    return node is None or (isinstance(node, ScalarNode) and node.tag == NULL_TAG)


def _has_value_field(node: MappingNode) -> bool:
    return any(isinstance(key, ScalarNode) and key.value == VALUE_FIELD for key, _ in node.value)
