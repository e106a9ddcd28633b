# TradeConnect
# Copyright (C) 2025 TradeConnect Team
#
# This file is part of TradeConnect and is dual-licensed:
#
# 1. Under the terms of the GNU Affero General Public License (AGPL) version 3,
#    as published by the Free Software Foundation. You may use, modify, and
#    distribute this file under those terms.
#
# 2. Under a commercial license, allowing use in closed-source or proprietary
#    environments without the obligations of the AGPL.
#
# If you have obtained this file under the AGPL, and you make it available over
# a network, you must also make the complete source code available under the same license.
#
# For more information or to purchase a commercial license, contact
# the TradeConnect Team.
#
# SPDX-License-Identifier: AGPL-3.0-or-later OR Proprietary

"""FEL (Factura Electronica en Linea) documents for the Guatemalan tax authority.

Builds the DTE XML of invoices and cancellations and hands it to a
certifier backend. The "local" backend certifies on the spot with a random
authorization number and is meant for development and tests; the "http"
backend posts the XML to the certifier configured in FEL_CERTIFIER_URL.
"""

import io
import logging
import xml.etree.ElementTree as ET
from datetime import datetime
from typing import IO
from uuid import uuid4

import requests
from django.conf import settings as conf_settings
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from tradeconnect.models.accounting import FelDocument, Invoice
from tradeconnect.models.organization import Organization
from tradeconnect.utils.core.exceptions import FelError

logger = logging.getLogger(__name__)

DTE_NAMESPACE = "http://www.sat.gob.gt/dte/fel/0.2.0"

ET.register_namespace("dte", DTE_NAMESPACE)


def _tag(name: str) -> str:
    return f"{{{DTE_NAMESPACE}}}{name}"


def _money(value) -> str:
    return f"{value:.2f}"


def _to_string(root: ET.Element) -> str:
    xml_tree = ET.ElementTree(root)
    xml_bytes_buffer: IO[bytes] = io.BytesIO()
    xml_tree.write(xml_bytes_buffer, encoding="utf-8", xml_declaration=True)
    return xml_bytes_buffer.getvalue().decode("utf-8")


def build_invoice_xml(invoice: Invoice) -> str:
    """Generate the DTE XML of an invoice (document type FACT).

    Args:
        invoice: Invoice with its lines and receiver data

    Returns:
        str: XML string with the GTDocumento structure
    """
    organization = invoice.organization
    root = ET.Element(_tag("GTDocumento"), {"Version": "0.1"})
    sat = ET.SubElement(root, _tag("SAT"), {"ClaseDocumento": "dte"})
    dte = ET.SubElement(sat, _tag("DTE"), {"ID": "DatosCertificados"})
    emission = ET.SubElement(dte, _tag("DatosEmision"), {"ID": "DatosEmision"})

    ET.SubElement(
        emission,
        _tag("DatosGenerales"),
        {
            "Tipo": "FACT",
            "FechaHoraEmision": (invoice.issued_at or timezone.now()).isoformat(timespec="seconds"),
            "CodigoMoneda": invoice.currency,
        },
    )

    issuer = ET.SubElement(
        emission,
        _tag("Emisor"),
        {
            "NITEmisor": organization.fiscal_nit.replace("-", ""),
            "NombreEmisor": organization.fiscal_name or organization.name,
            "CodigoEstablecimiento": organization.fiscal_establishment,
            "NombreComercial": organization.name,
            "AfiliacionIVA": "GEN",
        },
    )
    _address(issuer, "DireccionEmisor", organization.fiscal_address)

    receiver = ET.SubElement(
        emission,
        _tag("Receptor"),
        {
            "IDReceptor": invoice.receiver_nit.replace("-", ""),
            "NombreReceptor": invoice.receiver_name,
            "CorreoReceptor": invoice.receiver_email,
        },
    )
    _address(receiver, "DireccionReceptor", invoice.receiver_address)

    items = ET.SubElement(emission, _tag("Items"))
    for line in invoice.lines.all():
        item = ET.SubElement(items, _tag("Item"), {"NumeroLinea": str(line.number), "BienOServicio": "S"})
        ET.SubElement(item, _tag("Cantidad")).text = str(line.quantity)
        ET.SubElement(item, _tag("UnidadMedida")).text = "UND"
        ET.SubElement(item, _tag("Descripcion")).text = line.description
        ET.SubElement(item, _tag("PrecioUnitario")).text = _money(line.unit_price)
        ET.SubElement(item, _tag("Precio")).text = _money(line.unit_price * line.quantity)
        ET.SubElement(item, _tag("Descuento")).text = _money(line.discount)
        taxes = ET.SubElement(item, _tag("Impuestos"))
        tax = ET.SubElement(taxes, _tag("Impuesto"))
        ET.SubElement(tax, _tag("NombreCorto")).text = "IVA"
        ET.SubElement(tax, _tag("CodigoUnidadGravable")).text = "1"
        ET.SubElement(tax, _tag("MontoGravable")).text = _money(line.taxable)
        ET.SubElement(tax, _tag("MontoImpuesto")).text = _money(line.tax)
        ET.SubElement(item, _tag("Total")).text = _money(line.total)

    totals = ET.SubElement(emission, _tag("Totales"))
    total_taxes = ET.SubElement(totals, _tag("TotalImpuestos"))
    ET.SubElement(total_taxes, _tag("TotalImpuesto"), {"NombreCorto": "IVA", "TotalMontoImpuesto": _money(invoice.tax)})
    ET.SubElement(totals, _tag("GranTotal")).text = _money(invoice.total)

    return _to_string(root)


def _address(parent: ET.Element, name: str, street: str) -> None:
    address = ET.SubElement(parent, _tag(name))
    ET.SubElement(address, _tag("Direccion")).text = street or "Ciudad"
    ET.SubElement(address, _tag("CodigoPostal")).text = "01001"
    ET.SubElement(address, _tag("Municipio")).text = "Guatemala"
    ET.SubElement(address, _tag("Departamento")).text = "Guatemala"
    ET.SubElement(address, _tag("Pais")).text = "GT"


def build_cancellation_xml(invoice: Invoice, certified: FelDocument, reason: str) -> str:
    """Generate the XML voiding a certified invoice."""
    organization = invoice.organization
    root = ET.Element(_tag("GTAnulacionDocumento"), {"Version": "0.1"})
    sat = ET.SubElement(root, _tag("SAT"))
    cancellation = ET.SubElement(sat, _tag("AnulacionDTE"), {"ID": "DatosCertificados"})
    ET.SubElement(
        cancellation,
        _tag("DatosGenerales"),
        {
            "ID": "DatosAnulacion",
            "NumeroDocumentoAAnular": certified.authorization_number,
            "NITEmisor": organization.fiscal_nit.replace("-", ""),
            "IDReceptor": invoice.receiver_nit.replace("-", ""),
            "FechaEmisionDocumentoAnular": certified.authorization_date.isoformat(timespec="seconds"),
            "FechaHoraAnulacion": timezone.now().isoformat(timespec="seconds"),
            "MotivoAnulacion": reason,
        },
    )
    return _to_string(root)


def certify_local(xml: str, organization: Organization) -> dict:
    authorization = str(uuid4()).upper()
    return {
        "authorization_number": authorization,
        "authorization_date": timezone.now(),
        "series": authorization[:8],
        "number": str(int(authorization[9:18].replace("-", ""), 16)),
        "certified_xml": xml,
    }


def certify_http(xml: str, organization: Organization) -> dict:
    """Submit the XML to the remote certifier.

    Raises:
        FelError: If the certifier cannot be reached or rejects the document
    """
    headers = {"Content-Type": "application/xml"}
    token = organization.get_config("fel_certifier_token", "", bypass_cache=True)
    if token:
        headers["Authorization"] = f"Bearer {token}"

    try:
        response = requests.post(
            conf_settings.FEL_CERTIFIER_URL,
            data=xml.encode("utf-8"),
            headers=headers,
            timeout=conf_settings.FEL_CERTIFIER_TIMEOUT,
        )
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError) as err:
        raise FelError("certifier_unavailable", f"FEL certifier error: {err}") from err

    if not isinstance(data, dict):
        raise FelError("certification_rejected", "Malformed reply from the FEL certifier")

    if not data.get("success", False):
        errors = data.get("errors") or ["unknown error"]
        raise FelError("certification_rejected", "; ".join(str(error) for error in errors))

    if not data.get("uuid"):
        raise FelError("certification_rejected", "The FEL certifier reply has no authorization number")

    authorization_date = data.get("date")
    if isinstance(authorization_date, str):
        authorization_date = parse_datetime(authorization_date)
    if not isinstance(authorization_date, datetime):
        authorization_date = timezone.now()

    return {
        "authorization_number": str(data["uuid"]),
        "authorization_date": authorization_date,
        "series": str(data.get("series", "")),
        "number": str(data.get("number", "")),
        "certified_xml": data.get("xml") or xml,
    }


CERTIFIER_BACKENDS = {
    "local": certify_local,
    "http": certify_http,
}


def get_certifier(organization: Organization):
    backend = organization.get_config("fel_certifier_backend", conf_settings.FEL_CERTIFIER_BACKEND, bypass_cache=True)
    if backend not in CERTIFIER_BACKENDS:
        raise FelError("unknown_certifier", f"Unknown FEL certifier backend: {backend}")
    return CERTIFIER_BACKENDS[backend]
