"""
Value codec for Odoo's XML-RPC dialect.

Native Python values are first mapped onto an explicit tagged variant
(`RpcValue`) and only then rendered to / read from `<value>` elements, so
both directions are total functions over a closed set of tags:

    str            <-> <string>
    bool           <-> <boolean>   (checked before int, bool is an int subclass)
    int            <-> <int> / <i4> / <i8>
    float          <-> <double>
    list / tuple   <-> <array><data>...</data></array>
    dict           <-> <struct><member>...</member></struct>
    anything else   -> <nil/>

Unknown tags coming back from the server decode to None instead of failing.
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Tuple

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1


class RpcType(str, Enum):
    STRING = "string"
    INT = "int"
    DOUBLE = "double"
    BOOLEAN = "boolean"
    NIL = "nil"
    ARRAY = "array"
    STRUCT = "struct"


@dataclass(frozen=True)
class RpcValue:
    """
    One XML-RPC value.

    `value` holds a str/int/float/bool for scalars, None for NIL, a tuple of
    RpcValue for ARRAY and a tuple of (name, RpcValue) pairs for STRUCT.
    """
    type: RpcType
    value: Any = None


NIL = RpcValue(RpcType.NIL)


def encode(native: Any) -> RpcValue:
    """Map a native Python value onto the tagged variant."""
    if isinstance(native, str):
        return RpcValue(RpcType.STRING, native)
    if isinstance(native, bool):
        return RpcValue(RpcType.BOOLEAN, native)
    if isinstance(native, int):
        return RpcValue(RpcType.INT, native)
    if isinstance(native, float):
        return RpcValue(RpcType.DOUBLE, native)
    if isinstance(native, (list, tuple)):
        return RpcValue(RpcType.ARRAY, tuple(encode(item) for item in native))
    if isinstance(native, dict):
        return RpcValue(RpcType.STRUCT, tuple((str(k), encode(v)) for k, v in native.items()))
    return NIL


def decode(value: RpcValue) -> Any:
    """Exact inverse of `encode`, tag by tag."""
    if value.type in (RpcType.STRING, RpcType.INT, RpcType.DOUBLE, RpcType.BOOLEAN):
        return value.value
    if value.type == RpcType.ARRAY:
        return [decode(item) for item in value.value]
    if value.type == RpcType.STRUCT:
        return {name: decode(member) for name, member in value.value}
    return None


# ---------------------------------------------------------------------------
# XML rendering
# ---------------------------------------------------------------------------

def to_element(value: RpcValue) -> ET.Element:
    """Render an RpcValue as a `<value>` element."""
    element = ET.Element("value")

    if value.type == RpcType.STRING:
        ET.SubElement(element, "string").text = value.value
    elif value.type == RpcType.BOOLEAN:
        ET.SubElement(element, "boolean").text = "1" if value.value else "0"
    elif value.type == RpcType.INT:
        tag = "int" if INT32_MIN <= value.value <= INT32_MAX else "i8"
        ET.SubElement(element, tag).text = str(value.value)
    elif value.type == RpcType.DOUBLE:
        ET.SubElement(element, "double").text = repr(value.value)
    elif value.type == RpcType.ARRAY:
        data = ET.SubElement(ET.SubElement(element, "array"), "data")
        for item in value.value:
            data.append(to_element(item))
    elif value.type == RpcType.STRUCT:
        struct = ET.SubElement(element, "struct")
        for name, member_value in value.value:
            member = ET.SubElement(struct, "member")
            ET.SubElement(member, "name").text = name
            member.append(to_element(member_value))
    else:
        ET.SubElement(element, "nil")

    return element


def _local_name(tag: str) -> str:
    # <ex:nil/> arrives namespaced from some servers
    if "}" in tag:
        return tag.rsplit("}", 1)[1]
    return tag.split(":")[-1]


def from_element(element: ET.Element) -> RpcValue:
    """Read a `<value>` element back into an RpcValue."""
    children = list(element)
    if not children:
        # Untyped <value>text</value> is a string in XML-RPC
        return RpcValue(RpcType.STRING, element.text or "")

    typed = children[0]
    tag = _local_name(typed.tag)
    text = typed.text or ""

    if tag == "string":
        return RpcValue(RpcType.STRING, text)
    if tag in ("int", "i4", "i8"):
        return RpcValue(RpcType.INT, int(text.strip()))
    if tag == "double":
        return RpcValue(RpcType.DOUBLE, float(text.strip()))
    if tag == "boolean":
        return RpcValue(RpcType.BOOLEAN, text.strip() in ("1", "true"))
    if tag == "dateTime.iso8601":
        return RpcValue(RpcType.STRING, text.strip())
    if tag == "array":
        data = typed.find("data")
        items = [] if data is None else [from_element(v) for v in data.findall("value")]
        return RpcValue(RpcType.ARRAY, tuple(items))
    if tag == "struct":
        members: List[Tuple[str, RpcValue]] = []
        for member in typed.findall("member"):
            name = member.findtext("name", default="")
            member_value = member.find("value")
            members.append((name, NIL if member_value is None else from_element(member_value)))
        return RpcValue(RpcType.STRUCT, tuple(members))
    return NIL
