"""
XML helpers shared by the WFS formatters.
"""

from typing import Optional

from lxml import etree

WFS_NS = "http://www.opengis.net/wfs"
WFS20_NS = "http://www.opengis.net/wfs/2.0"
GML_NS = "http://www.opengis.net/gml"
OGC_NS = "http://www.opengis.net/ogc"
OWS_NS = "http://www.opengis.net/ows/1.1"
XLINK_NS = "http://www.w3.org/1999/xlink"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"
XSD_NS = "http://www.w3.org/2001/XMLSchema"
W3W_NS = "http://what3words.com"


def qname(ns: Optional[str], tag: str) -> str:
    """Clark notation ``{namespace}tag``."""
    return f"{{{ns}}}{tag}" if ns else tag


def sub(parent, ns: Optional[str], tag: str, text: Optional[str] = None, **attrib):
    """Append a child element, optionally with text and attributes."""
    element = etree.SubElement(parent, qname(ns, tag))
    for key, value in attrib.items():
        element.set(key, value)
    if text is not None:
        element.text = text
    return element


def to_string(root) -> str:
    """Serialize a document with an XML declaration, indented."""
    return etree.tostring(
        root, xml_declaration=True, encoding="UTF-8", pretty_print=True
    ).decode("utf-8")
