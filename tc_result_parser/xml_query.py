"""XPath queries over TestComplete XML logs.

The public helpers accept either a path to an XML file or a document
that was already parsed with load_document, so a log read once can be
queried several times.
"""

import logging
from pathlib import Path
from typing import Optional

from lxml import etree

logger = logging.getLogger(__name__)

_PARSER = etree.XMLParser(remove_blank_text=True, resolve_entities=False, no_network=True)


def load_document(xml_path) -> etree._ElementTree:
    """
    Parse an XML file.

    Raises:
        OSError: If the file cannot be read
        etree.XMLSyntaxError: If the file is not well-formed XML
    """
    return etree.parse(str(Path(xml_path)), _PARSER)


def _document(source):
    """Parsed tree or element for source, None if the file cannot be parsed."""
    if isinstance(source, (etree._ElementTree, etree._Element)):
        return source
    try:
        return load_document(source)
    except (OSError, etree.XMLSyntaxError) as e:
        logger.error(f"Failed to parse {source}: {e}")
        return None


def query(tree, xpath: str) -> list:
    """Evaluate xpath on a parsed tree or element, [] on failure."""
    try:
        result = tree.xpath(xpath)
    except etree.XPathError as e:
        logger.error(f"Invalid XPath '{xpath}': {e}")
        return []

    if not isinstance(result, list):
        # Scalar XPath results (count(), string()) are not node sets
        logger.debug(f"XPath '{xpath}' returned a scalar, ignoring")
        return []
    return result


def first_text(tree, xpath: str) -> Optional[str]:
    """Text content of the first node matching xpath, or None."""
    nodes = query(tree, xpath)
    if not nodes:
        return None
    node = nodes[0]
    if isinstance(node, str):
        return str(node)
    return "".join(node.itertext())


def get_nodes_by_xpath(source, xpath: str) -> list:
    """
    Evaluate an XPath expression against an XML file or parsed document.

    Args:
        source: Location of the .xml file, or a parsed document
        xpath: XPath expression

    Returns:
        List of matching nodes, empty if nothing matched or the file
        could not be parsed
    """
    doc = _document(source)
    if doc is None:
        return []
    return query(doc, xpath)


def get_text(source, xpath: str) -> Optional[str]:
    """Text of the first match of xpath in an XML file or parsed document, or None."""
    doc = _document(source)
    if doc is None:
        return None
    return first_text(doc, xpath)


def get_root_attribute(source, attribute: str = "name") -> str:
    """Attribute of the root element, or an empty string."""
    doc = _document(source)
    if doc is None:
        return ""
    root = doc.getroot() if isinstance(doc, etree._ElementTree) else doc.getroottree().getroot()
    return root.get(attribute, "")
