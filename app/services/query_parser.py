"""
WFS Query Parser

Turns WFS key-value-pair query parameters into a normalized ``WfsRequest``.

Keys are matched case-insensitively. The bounding box comes from the
``BBOX`` parameter when it parses; otherwise from a ``<BBOX>`` spatial
predicate inside OGC Filter XML passed in the ``FILTER`` parameter.
"""

import logging
import re
from typing import Iterable, List, Mapping, Optional, Tuple, Union

from lxml import etree
from pydantic import BaseModel, ConfigDict

from app.schemas.geo import BoundingBox
from app.schemas.wfs import WfsRequest

logger = logging.getLogger(__name__)


class FilterBBox(BaseModel):
    """Bounding box and CRS extracted from a Filter BBOX predicate."""

    model_config = ConfigDict(frozen=True)

    bbox: BoundingBox
    srs_name: Optional[str] = None


class FilterParseError(BaseModel):
    """Why a Filter could not yield a bounding box."""

    model_config = ConfigDict(frozen=True)

    reason: str


FilterParseResult = Union[FilterBBox, FilterParseError]


def _local_name(element) -> Optional[str]:
    if not isinstance(element.tag, str):
        return None
    return etree.QName(element).localname


def _find_descendant(element, *names: str):
    """First descendant whose local name is one of ``names``, in document order."""
    for child in element.iter():
        if child is not element and _local_name(child) in names:
            return child
    return None


def _find_child(element, name: str):
    for child in element:
        if _local_name(child) == name:
            return child
    return None


def _to_floats(values: Iterable[str]) -> Optional[List[float]]:
    try:
        return [float(v) for v in values]
    except ValueError:
        return None


def _reconciled_box(x1: float, y1: float, x2: float, y2: float) -> BoundingBox:
    # X is longitude / easting, Y is latitude / northing
    return BoundingBox(min(y1, y2), min(x1, x2), max(y1, y2), max(x1, x2))


def parse_gml_coordinates(text: str, cs: str = ",", ts: str = " ") -> Optional[BoundingBox]:
    """
    Parse a GML 2 ``<gml:coordinates>`` box: ``x1,y1 x2,y2``.

    ``cs`` separates values within a tuple and ``ts`` separates tuples.
    A flat list of four values is also accepted.
    """
    text = text.strip()
    if not text:
        return None

    tuple_split = r"\s+" if ts.isspace() else re.escape(ts)
    tuples = [t for t in re.split(tuple_split, text) if t]

    if len(tuples) >= 2 and all(cs in t for t in tuples[:2]):
        first, second = tuples[0].split(cs), tuples[1].split(cs)
        if len(first) < 2 or len(second) < 2:
            return None
        values = _to_floats(first[:2] + second[:2])
    else:
        values = _to_floats(v for v in re.split(r"[\s,]+", text) if v)
        if values is not None and len(values) != 4:
            return None

    if values is None:
        return None

    return _reconciled_box(values[0], values[1], values[2], values[3])


def parse_gml_corners(lower_corner: str, upper_corner: str) -> Optional[BoundingBox]:
    """Parse GML 3 ``lowerCorner`` / ``upperCorner`` text: ``x y``."""
    lower = _to_floats(lower_corner.split())
    upper = _to_floats(upper_corner.split())
    if lower is None or upper is None or len(lower) < 2 or len(upper) < 2:
        return None
    return _reconciled_box(lower[0], lower[1], upper[0], upper[1])


def extract_bbox_from_filter(filter_xml: str) -> FilterParseResult:
    """
    Extract the envelope of the first ``<BBOX>`` predicate in OGC Filter XML.

    Supports ``gml:Box/gml:coordinates`` (GML 2) and
    ``gml:Envelope/gml:lowerCorner,gml:upperCorner`` (GML 3). Elements are
    matched by local name, so Filter Encoding 1.x and 2.0 namespaces both work.

    Never raises: malformed XML or missing structure is reported as a
    ``FilterParseError``.
    """
    parser = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=False)
    try:
        root = etree.fromstring(filter_xml.strip().encode("utf-8"), parser=parser)
    except (etree.XMLSyntaxError, ValueError) as e:
        return FilterParseError(reason=f"Malformed Filter XML: {e}")

    bbox_element = root if _local_name(root) == "BBOX" else _find_descendant(root, "BBOX")
    if bbox_element is None:
        return FilterParseError(reason="Filter has no BBOX predicate")

    box_element = _find_descendant(bbox_element, "Box", "Envelope")
    if box_element is None:
        return FilterParseError(reason="BBOX predicate has no gml:Box or gml:Envelope")

    srs_name = box_element.get("srsName")

    coordinates = _find_child(box_element, "coordinates")
    if coordinates is not None:
        bbox = parse_gml_coordinates(
            coordinates.text or "",
            cs=coordinates.get("cs", ","),
            ts=coordinates.get("ts", " "),
        )
    else:
        lower = _find_child(box_element, "lowerCorner")
        upper = _find_child(box_element, "upperCorner")
        if lower is None or upper is None:
            return FilterParseError(reason="Envelope is missing its corner elements")
        bbox = parse_gml_corners(lower.text or "", upper.text or "")

    if bbox is None:
        return FilterParseError(reason="Could not read envelope coordinates")

    return FilterBBox(bbox=bbox, srs_name=srs_name)


class WfsQueryParser:
    """Parser for WFS query string parameters."""

    def parse(self, query_params: Mapping[str, str]) -> WfsRequest:
        """
        Parse WFS query parameters.

        Args:
            query_params: Query parameters; keys are matched case-insensitively

        Returns:
            The parsed request
        """
        params = {str(key).lower(): value for key, value in query_params.items()}

        bbox = BoundingBox.parse(self._get(params, "bbox"))
        srs_name = self._get(params, "srsname") or self._get(params, "srs")

        if bbox is None:
            filter_xml = self._get(params, "filter")
            if filter_xml is not None:
                bbox, filter_srs = self._bbox_from_filter(filter_xml)
                # An explicit srsName/srs parameter wins over the Filter's srsName
                srs_name = srs_name or filter_srs

        return WfsRequest(
            service=self._get(params, "service"),
            version=self._get(params, "version"),
            request=self._get(params, "request"),
            type_name=self._get(params, "typename") or self._get(params, "typenames"),
            bbox=bbox,
            max_features=self._parse_int(
                self._get(params, "maxfeatures") or self._get(params, "count")
            ),
            output_format=self._get(params, "outputformat"),
            srs_name=srs_name,
        )

    @staticmethod
    def _bbox_from_filter(filter_xml: str) -> Tuple[Optional[BoundingBox], Optional[str]]:
        result = extract_bbox_from_filter(filter_xml)
        if isinstance(result, FilterParseError):
            # Falls through to "BBOX required" in GetFeature
            logger.debug("No BBOX taken from FILTER parameter: %s", result.reason)
            return None, None
        return result.bbox, result.srs_name

    @staticmethod
    def _get(params: Mapping[str, str], key: str) -> Optional[str]:
        value = params.get(key)
        if value is None or not str(value).strip():
            return None
        return value

    @staticmethod
    def _parse_int(value: Optional[str]) -> Optional[int]:
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None


# Singleton instance for dependency injection
query_parser = WfsQueryParser()
