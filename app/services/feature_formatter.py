"""
WFS Feature Formatter

Serializes feature collections for GetFeature (GML or GeoJSON) and the
feature type schema for DescribeFeatureType.

GML dialects:

- WFS 1.0.0 / GML 2: ``gml:featureMember`` wrapping, ``gml:Box`` envelope,
  ``gml:coordinates`` as ``lon,lat``, no count or timestamp attributes.
- WFS 2.0.0 / GML 3: ``wfs:member`` wrapping, ``wfs:boundedBy`` around a
  ``gml:Envelope`` with ``lon lat`` corners, ``gml:pos`` as ``lat lon``, and
  ``numberMatched``, ``numberReturned`` and ``timeStamp`` on the root.

Every coordinate is transformed from WGS84 into the target CRS before it
is written.
"""

from datetime import datetime, timezone
from typing import Optional

from lxml import etree

from app.schemas.feature import WfsFeature, WfsFeatureCollection
from app.schemas.geo import BoundingBox, GeoCoordinate
from app.schemas.geojson import (
    GeoJsonFeature,
    GeoJsonFeatureCollection,
    LatLng,
    LocationProperties,
    NamedCrs,
    NamedCrsProperties,
    PointGeometry,
    Square,
)
from app.schemas.wfs import WfsDialect
from app.services.crs_service import WGS84, CoordinateTransformationService, crs_service
from app.utils.xml import GML_NS, W3W_NS, WFS20_NS, WFS_NS, XSD_NS, XSI_NS, qname, sub, to_string

FEATURE_PROPERTIES = ("words", "country", "nearestPlace", "language")


class WfsFeatureFormatter:
    """Formatter for WFS feature responses."""

    def __init__(self, transformation_service: CoordinateTransformationService = crs_service):
        self._crs = transformation_service

    def format_as_gml(
        self,
        collection: WfsFeatureCollection,
        dialect: WfsDialect = WfsDialect.V2_0,
        srs_name: Optional[str] = None,
    ) -> str:
        """
        Format a feature collection as a WFS FeatureCollection document.

        Args:
            collection: Features to write (coordinates in WGS84)
            dialect: WFS dialect to emit
            srs_name: Target CRS, defaults to WGS84

        Returns:
            XML document as a string
        """
        target = self._crs.normalize_code(srs_name)
        wfs_ns = WFS20_NS if dialect.is_v2 else WFS_NS

        root = etree.Element(
            qname(wfs_ns, "FeatureCollection"),
            nsmap={"wfs": wfs_ns, "gml": GML_NS, "w3w": W3W_NS, "xsi": XSI_NS},
        )

        if dialect.is_v2:
            root.set("numberMatched", str(collection.total_count))
            root.set("numberReturned", str(collection.total_count))
            root.set("timeStamp", self._timestamp())

        if collection.bounding_box is not None:
            if dialect.is_v2:
                self._write_envelope(root, collection.bounding_box, target)
            else:
                self._write_box(root, collection.bounding_box, target)

        for feature in collection.features:
            if dialect.is_v2:
                member = sub(root, WFS20_NS, "member")
            else:
                member = sub(root, GML_NS, "featureMember")
            self._write_feature(member, feature, target, dialect)

        return to_string(root)

    def format_as_geojson(
        self, collection: WfsFeatureCollection, srs_name: Optional[str] = None
    ) -> str:
        """
        Format a feature collection as a GeoJSON FeatureCollection.

        Geometry is ``[x, y]`` in the target CRS. A named ``crs`` member is
        only written when the target is not WGS84.
        """
        target = self._crs.normalize_code(srs_name)
        document = GeoJsonFeatureCollection(
            features=[self._geojson_feature(feature, target) for feature in collection.features],
            number_matched=collection.total_count,
            number_returned=len(collection.features),
            crs=(
                NamedCrs(properties=NamedCrsProperties(name=target))
                if target != WGS84
                else None
            ),
        )
        return document.model_dump_json(by_alias=True, exclude_none=True, indent=2)

    def describe_feature_type(self, dialect: WfsDialect = WfsDialect.V2_0) -> str:
        """
        Generate the XML schema of the ``location`` feature type.

        The schema is the same for every dialect.
        """
        root = etree.Element(
            qname(XSD_NS, "schema"),
            nsmap={"xsd": XSD_NS, "w3w": W3W_NS, "gml": GML_NS},
        )
        root.set("targetNamespace", W3W_NS)
        root.set("elementFormDefault", "qualified")

        sub(root, XSD_NS, "import", namespace=GML_NS)

        complex_type = sub(root, XSD_NS, "complexType", name="locationType")
        extension = sub(
            sub(complex_type, XSD_NS, "complexContent"),
            XSD_NS,
            "extension",
            base="gml:AbstractFeatureType",
        )
        sequence = sub(extension, XSD_NS, "sequence")
        for name in FEATURE_PROPERTIES:
            sub(sequence, XSD_NS, "element", name=name, type="xsd:string", minOccurs="0")
        sub(sequence, XSD_NS, "element", name="geometry", type="gml:PointPropertyType", minOccurs="0")

        sub(
            root,
            XSD_NS,
            "element",
            name="location",
            type="w3w:locationType",
            substitutionGroup="gml:_Feature",
        )

        return to_string(root)

    def _write_box(self, parent, bbox: BoundingBox, srs_name: str) -> None:
        lower = self._crs.transform(bbox.south_west, srs_name)
        upper = self._crs.transform(bbox.north_east, srs_name)

        box = sub(sub(parent, GML_NS, "boundedBy"), GML_NS, "Box", srsName=srs_name)
        sub(
            box,
            GML_NS,
            "coordinates",
            f"{lower.longitude},{lower.latitude} {upper.longitude},{upper.latitude}",
        )

    def _write_envelope(self, parent, bbox: BoundingBox, srs_name: str) -> None:
        lower = self._crs.transform(bbox.south_west, srs_name)
        upper = self._crs.transform(bbox.north_east, srs_name)

        envelope = sub(sub(parent, WFS20_NS, "boundedBy"), GML_NS, "Envelope", srsName=srs_name)
        # Corners are x y, unlike gml:pos
        sub(envelope, GML_NS, "lowerCorner", f"{lower.longitude} {lower.latitude}")
        sub(envelope, GML_NS, "upperCorner", f"{upper.longitude} {upper.latitude}")

    def _write_feature(
        self, parent, feature: WfsFeature, srs_name: str, dialect: WfsDialect
    ) -> None:
        coord = self._crs.transform(feature.coordinate, srs_name)
        location = feature.location

        element = sub(parent, W3W_NS, "location", **{qname(GML_NS, "id"): feature.id})
        sub(element, W3W_NS, "words", location.words)
        sub(element, W3W_NS, "country", location.country)
        if location.nearest_place:
            sub(element, W3W_NS, "nearestPlace", location.nearest_place)
        sub(element, W3W_NS, "language", location.language)

        point = sub(sub(element, W3W_NS, "geometry"), GML_NS, "Point", srsName=srs_name)
        if dialect.is_v2:
            sub(point, GML_NS, "pos", self._pos(coord))
        else:
            sub(point, GML_NS, "coordinates", f"{coord.longitude},{coord.latitude}")

    def _geojson_feature(self, feature: WfsFeature, srs_name: str) -> GeoJsonFeature:
        coord = self._crs.transform(feature.coordinate, srs_name)
        location = feature.location
        square = location.square

        return GeoJsonFeature(
            id=feature.id,
            geometry=PointGeometry(coordinates=[coord.longitude, coord.latitude]),
            properties=LocationProperties(
                words=location.words,
                country=location.country,
                nearest_place=location.nearest_place,
                language=location.language,
                map=location.map,
                square=Square(
                    southwest=LatLng(lat=square.min_latitude, lng=square.min_longitude),
                    northeast=LatLng(lat=square.max_latitude, lng=square.max_longitude),
                ),
            ),
        )

    @staticmethod
    def _pos(coord: GeoCoordinate) -> str:
        return f"{coord.latitude} {coord.longitude}"

    @staticmethod
    def _timestamp() -> str:
        now = datetime.now(timezone.utc)
        return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


# Singleton instance for dependency injection
feature_formatter = WfsFeatureFormatter()
