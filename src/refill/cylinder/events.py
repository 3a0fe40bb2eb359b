"""Cylinder domain events."""

from protean.fields import DateTime, Identifier, Integer, String

from refill.domain import refill


@refill.event(part_of="Cylinder")
class CylinderReceived:
    """A new cylinder entered the shop and was given its sequential number."""

    __version__ = 1

    cylinder_id = Identifier(required=True)
    sequential_number = Integer(required=True)
    label_token = String()
    received_at = DateTime(required=True)


@refill.event(part_of="Cylinder")
class CylinderMarkedReady:
    """A cylinder was filled and is ready for pickup."""

    __version__ = 1

    cylinder_id = Identifier(required=True)
    sequential_number = Integer(required=True)
    marked_at = DateTime(required=True)


@refill.event(part_of="Cylinder")
class CylinderDelivered:
    """A filled cylinder was handed back to its customer."""

    __version__ = 1

    cylinder_id = Identifier(required=True)
    sequential_number = Integer(required=True)
    delivered_at = DateTime(required=True)


@refill.event(part_of="Cylinder")
class LabelAssigned:
    """A cylinder received a new label token."""

    __version__ = 1

    cylinder_id = Identifier(required=True)
    label_token = String(required=True)
    previous_label_token = String()
    assigned_at = DateTime(required=True)
