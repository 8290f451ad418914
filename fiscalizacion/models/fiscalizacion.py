"""
Fiscalizacion Models - legacy customs inspection tables.

Mappings for the tables owned by the inspection monolith:
- DocDocumentoBase: guides/documents (read only)
- OpFiscOperacion / OpFiscMarca: inspection operations and the marks that tie documents to them
- OpFiscTipoFiscalizacion / OpFiscResultado: inspection types and their result catalog
- OpFiscAccionFiscalizacion: inspection action of an operation
- OpFiscRegistroFiscalizacion: registration of an action (composite key)
- OpFiscResultadoAccion: results applied in a registration

Table and column names are the legacy Oracle ones. Schemas are symbolic
("fiscalizaciones", "documentos") and resolved by the engine's
schema_translate_map.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    String, Integer, DateTime, ForeignKey, ForeignKeyConstraint, Sequence, Index
)
from sqlalchemy.orm import Mapped, mapped_column

from fiscalizacion.database import Base
from fiscalizacion.db_types import FlagSN, SI, NO


SCHEMA_FISCALIZACIONES = "fiscalizaciones"
SCHEMA_DOCUMENTOS = "documentos"

# Sequence feeding OpFiscResultadoAccion.Id
SEC_RESULTADO_ACCION = Sequence(
    "sec_opfiscresultadoaccion",
    schema=SCHEMA_FISCALIZACIONES,
)


class DocDocumentoBase(Base):
    """Base document (guide). Only read by this service."""
    __tablename__ = "docdocumentobase"
    __table_args__ = {"schema": SCHEMA_DOCUMENTOS}

    id: Mapped[int] = mapped_column("id", Integer, primary_key=True, autoincrement=False)
    tipo_documento: Mapped[Optional[str]] = mapped_column("tipodocumento", String(10), nullable=True)
    numero_externo: Mapped[Optional[str]] = mapped_column("numeroexterno", String(200), nullable=True)
    fecha_creacion: Mapped[Optional[datetime]] = mapped_column("fechacreacion", DateTime, nullable=True)
    activo: Mapped[Optional[str]] = mapped_column("activo", FlagSN, nullable=True)

    def __repr__(self) -> str:
        return f"<DocDocumentoBase(id={self.id}, numero={self.numero_externo})>"


class OpFiscOperacion(Base):
    """Inspection operation grouping actions and document marks."""
    __tablename__ = "opfiscoperacion"
    __table_args__ = {"schema": SCHEMA_FISCALIZACIONES}

    id: Mapped[int] = mapped_column("id", Integer, primary_key=True, autoincrement=False)
    descripcion: Mapped[Optional[str]] = mapped_column("descripcion", String(500), nullable=True)
    fecha_creacion: Mapped[Optional[datetime]] = mapped_column("fechacreacion", DateTime, nullable=True)
    activa: Mapped[str] = mapped_column("activa", FlagSN, default=SI)


class OpFiscMarca(Base):
    """Mark linking a document to an inspection operation."""
    __tablename__ = "opfiscmarca"
    __table_args__ = (
        Index("ix_opfiscmarca_documento", "iddocumento", "activa"),
        {"schema": SCHEMA_FISCALIZACIONES},
    )

    id: Mapped[int] = mapped_column("id", Integer, primary_key=True, autoincrement=False)
    id_documento: Mapped[int] = mapped_column("iddocumento", Integer, nullable=False)
    id_operacion: Mapped[int] = mapped_column(
        "idopfiscoperacion",
        Integer,
        ForeignKey(f"{SCHEMA_FISCALIZACIONES}.opfiscoperacion.id"),
        nullable=False
    )
    activa: Mapped[str] = mapped_column("activa", FlagSN, default=SI)
    fecha_activa: Mapped[Optional[datetime]] = mapped_column("fechaactiva", DateTime, nullable=True)


class OpFiscTipoFiscalizacion(Base):
    """Inspection type; decides which results can be applied."""
    __tablename__ = "opfisctipofiscalizacion"
    __table_args__ = {"schema": SCHEMA_FISCALIZACIONES}

    codigo: Mapped[str] = mapped_column("codigo", String(10), primary_key=True)
    nombre: Mapped[str] = mapped_column("nombre", String(100), nullable=False)
    descripcion: Mapped[Optional[str]] = mapped_column("descripcion", String(500), nullable=True)
    activa: Mapped[str] = mapped_column("activa", FlagSN, default=SI)


class OpFiscAccionFiscalizacion(Base):
    """
    Inspection action of an operation.

    The two retention flags are the only columns this service updates.
    """
    __tablename__ = "opfiscaccionfiscalizacion"
    __table_args__ = {"schema": SCHEMA_FISCALIZACIONES}

    id: Mapped[int] = mapped_column("id", Integer, primary_key=True, autoincrement=False)
    id_operacion: Mapped[int] = mapped_column(
        "idopfiscoperacion",
        Integer,
        ForeignKey(f"{SCHEMA_FISCALIZACIONES}.opfiscoperacion.id"),
        nullable=False
    )
    codigo_tipo_fiscalizacion: Mapped[str] = mapped_column(
        "codigoopfisctipofiscaliza",
        String(10),
        ForeignKey(f"{SCHEMA_FISCALIZACIONES}.opfisctipofiscalizacion.codigo"),
        nullable=False
    )
    fecha_planificada: Mapped[Optional[datetime]] = mapped_column("fechaplanificada", DateTime, nullable=True)
    fecha_ejecucion: Mapped[Optional[datetime]] = mapped_column("fechaejecucion", DateTime, nullable=True)
    id_solicitante: Mapped[Optional[int]] = mapped_column("idsolicitante", Integer, nullable=True)
    nombre_solicitante: Mapped[Optional[str]] = mapped_column("nombresolicitante", String(100), nullable=True)
    descripcion: Mapped[Optional[str]] = mapped_column("descripcion", String(255), nullable=True)
    op_aduanera_retenida: Mapped[str] = mapped_column("opaduaneraretenida", FlagSN, default=NO)
    op_transporte_retenida: Mapped[str] = mapped_column("optransporteretenida", FlagSN, default=NO)
    activa: Mapped[str] = mapped_column("activa", FlagSN, default=SI)
    fecha_activa: Mapped[datetime] = mapped_column("fechaactiva", DateTime, nullable=False)
    fecha_desactiva: Mapped[Optional[datetime]] = mapped_column("fechadesactiva", DateTime, nullable=True)

    def __repr__(self) -> str:
        return f"<OpFiscAccionFiscalizacion(id={self.id}, tipo={self.codigo_tipo_fiscalizacion})>"


class OpFiscResultado(Base):
    """Result catalog entry of an inspection type."""
    __tablename__ = "opfiscresultado"
    __table_args__ = {"schema": SCHEMA_FISCALIZACIONES}

    codigo: Mapped[str] = mapped_column("codigo", String(20), primary_key=True)
    descripcion: Mapped[str] = mapped_column("descripcion", String(255), nullable=False)
    codigo_tipo_fiscalizacion: Mapped[str] = mapped_column(
        "codigoopfisctipofiscaliza",
        String(10),
        ForeignKey(f"{SCHEMA_FISCALIZACIONES}.opfisctipofiscalizacion.codigo"),
        nullable=False
    )
    libera_op_aduanera: Mapped[str] = mapped_column("liberaopaduanera", FlagSN, default=NO)
    libera_op_transporte: Mapped[str] = mapped_column("liberaoptransporte", FlagSN, default=NO)
    activa: Mapped[str] = mapped_column("activa", FlagSN, default=SI)
    fecha_activa: Mapped[datetime] = mapped_column("fechaactiva", DateTime, nullable=False)
    fecha_desactiva: Mapped[Optional[datetime]] = mapped_column("fechadesactiva", DateTime, nullable=True)


class OpFiscRegistroFiscalizacion(Base):
    """
    Registration of an inspection action.

    Primary key is (id, id_accion_fiscalizacion): the id is numbered
    max+1 inside each action, it is not unique on its own.
    """
    __tablename__ = "opfiscregistrofiscalizaci"
    __table_args__ = {"schema": SCHEMA_FISCALIZACIONES}

    id: Mapped[int] = mapped_column("id", Integer, primary_key=True, autoincrement=False)
    id_accion_fiscalizacion: Mapped[int] = mapped_column(
        "idopfiscaccionfiscalizaci",
        Integer,
        ForeignKey(f"{SCHEMA_FISCALIZACIONES}.opfiscaccionfiscalizacion.id"),
        primary_key=True,
        autoincrement=False
    )
    numero_doc_asociado: Mapped[str] = mapped_column("numerodocasociado", String(50), nullable=False)
    codigo_tipo_documento: Mapped[str] = mapped_column("codigotipodocumento", String(10), nullable=False)
    id_documento_asociado: Mapped[Optional[int]] = mapped_column("iddocumentoasociado", Integer, nullable=True)
    identificacion_vehiculo: Mapped[str] = mapped_column("identificacionvehiculo", String(50), nullable=False)
    fecha_ejecucion: Mapped[datetime] = mapped_column("fechaejecucion", DateTime, nullable=False)
    op_aduanera_retenida: Mapped[str] = mapped_column("opaduaneraretenida", FlagSN, nullable=False)
    op_transporte_retenida: Mapped[str] = mapped_column("optransporteretenida", FlagSN, nullable=False)
    id_ejecutante: Mapped[Optional[int]] = mapped_column("idejecutante", Integer, nullable=True)
    nombre_ejecutante: Mapped[Optional[str]] = mapped_column("nombreejecutante", String(100), nullable=True)
    activo: Mapped[str] = mapped_column("activo", FlagSN, nullable=False)
    fecha_activa: Mapped[datetime] = mapped_column("fechaactiva", DateTime, nullable=False)
    fecha_desactiva: Mapped[datetime] = mapped_column("fechadesactiva", DateTime, nullable=False)
    fecha_modificacion: Mapped[Optional[datetime]] = mapped_column("fechamodificacion", DateTime, nullable=True)
    codigo_denuncia: Mapped[Optional[str]] = mapped_column("codigodenuncia", String(50), nullable=True)
    total_bultos: Mapped[Optional[int]] = mapped_column("totalbultos", Integer, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<OpFiscRegistroFiscalizacion(id={self.id}, "
            f"accion={self.id_accion_fiscalizacion}, activo={self.activo})>"
        )


class OpFiscResultadoAccion(Base):
    """Result applied to a registration. Id comes from SEC_OPFISCRESULTADOACCION."""
    __tablename__ = "opfiscresultadoaccion"
    __table_args__ = (
        ForeignKeyConstraint(
            ["idopfiscregistrofiscaliza", "idopfiscaccionfiscalizaci"],
            [
                f"{SCHEMA_FISCALIZACIONES}.opfiscregistrofiscalizaci.id",
                f"{SCHEMA_FISCALIZACIONES}.opfiscregistrofiscalizaci.idopfiscaccionfiscalizaci",
            ],
        ),
        {"schema": SCHEMA_FISCALIZACIONES},
    )

    id: Mapped[int] = mapped_column("id", Integer, SEC_RESULTADO_ACCION, primary_key=True)
    id_registro_fiscalizacion: Mapped[int] = mapped_column("idopfiscregistrofiscaliza", Integer, nullable=False)
    id_accion_fiscalizacion: Mapped[int] = mapped_column("idopfiscaccionfiscalizaci", Integer, nullable=False)
    codigo_resultado: Mapped[str] = mapped_column("codigoopfiscresultado", String(20), nullable=False)
    observacion: Mapped[Optional[str]] = mapped_column("observacion", String(255), nullable=True)
    activo: Mapped[str] = mapped_column("activo", FlagSN, nullable=False)
    fecha_activo: Mapped[datetime] = mapped_column("fechaactivo", DateTime, nullable=False)
    fecha_desactivo: Mapped[datetime] = mapped_column("fechadesactivo", DateTime, nullable=False)
