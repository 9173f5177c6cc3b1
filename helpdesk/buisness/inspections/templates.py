"""
Department inspection checklists.

Each template is a list of areas, each area a list of item descriptions.
Marketing areas and items may be restricted to specific property codes;
an empty tuple means "every property".
"""

from typing import Dict, List, Optional

from helpdesk.data.inspections.inspection import Inspection

RRHH_AREAS = [
    ("Planificación y control de plantilla", [
        "Seguimiento vacantes actuales",
        "Uso de plataformas para posteo de vacantes",
        "% Rotación actual de plantilla aceptable",
    ]),
    ("Plan de inducción a colaboradores", [
        "Inducción de personal de nuevo ingreso",
        "Inducción al puesto (Formato espejo y líder)",
        "Salarios emocionales",
        "Conocimiento de Reglamento Interno",
        "Entrega de PIN Nuevo Ingreso",
    ]),
    ("Evaluación y gestión de desempeño", [
        "Aplicación de evaluación de desempeño",
        "Seguimiento puntual de renovaciones",
    ]),
    ("Reconocimiento y recompensas", [
        "Festejo Cumpleaños",
        "Celebración Colaborador del Mes",
        "Celebración aniversarios",
    ]),
    ("Prevención Social y laboral", [
        "Integración de comisiones mixtas",
        "Tarjetas checadoras completas",
        "Recibos de nómina completos",
        "Papeletas de vacaciones",
        "Tiempo adicional autorizado",
    ]),
    ("Áreas comunes colaboradores", [
        "Comedor de colaboradores",
        "Vestidores/Lockers",
        "Baños colaboradores",
        "Oficinas",
    ]),
    ("Calendario Actividades", [
        "Actividad de mes",
        "Capacitaciones del mes",
    ]),
    ("Expedientes", [
        "Documentación completa colaborador",
        "Retención Infonavit",
        "Retención Foncacot",
        "Aceptación Fondo de ahorro",
        "Anexo sindicato",
        "Política salarios emocionales",
        "Formato inducción",
        "Perfil de puesto",
        "Contratos determinado/indeterminado",
    ]),
    ("Imagen", [
        "Higiene personal",
        "Uniforme completo (Conforme a la política)",
        "Uso de gafete/PIN nuevo ingreso",
        "Uso de Cubrebocas",
    ]),
    ("Vinculaciones y oferta académica", [
        "Vinculaciones con dependencias gubernamentales",
        "Vinculaciones con Universidades Locales",
        "Vinculaciones con dependencias no lucrativas",
    ]),
]

GSH_AREAS = [
    ("Auditoría y Procedimientos Financieros", [
        "Arqueo de cajas y vales",
        "Procedimiento de cobro a tarjetas",
        "Procedimiento de manejo de efectivo, uso de misceláneos y aplicación en sistema",
        "Revisión de ajustes",
        "Revisión de registros vs información ingresada en el sistema (Arqueo de PIT)",
        "Revisión de transferencias de cargos (Userlog Transfers)",
        "Verificación de saldos de AR´s",
        "Revisión y seguimiento de saldos de PM´s",
        "Seguimiento de facturación",
        "Manejo de discrepancias",
    ]),
    ("Procedimientos Operacionales de Front Desk", [
        "Procedimiento de no show y cargos",
        "Procedimiento y fraseología del check in",
        "Procedimiento y fraseología del check out",
        "Revisión de reservas canceladas y No Shows",
        "Revisión de saldos de huéspedes en casa",
    ]),
    ("Estándares de Servicio y Marca (Wyndham)", [
        "Conocimiento del Programa Wyndham Rewards",
        "Cumplimiento de objetivos de enrollment",
        "Fraseología y etiqueta telefónica",
        "Revisión de calificaciones en Medallia",
        "Preparación para QA de Wyndham",
        "Manejo de Wyndham Green",
    ]),
    ("Control de Personal y Documentación", [
        "Cumplimiento de reportes a corporativo (Mensuales y semanales)",
        "Revisión de atributos de claves ejecutivos atención al huésped, GSH y Auditor Nocturno",
        "Revisión de bitácora de pendientes",
        "Revisión de Check list de GSH, auditor nocturno y ejecutivos de atención al huésped",
        "Revisión de estándares de presentación del staff",
        "Revisión de papelería",
        "Revisión física de movimientos de ejecutivos de atención al huésped",
        "Revisión y seguimiento de Bitácora de quejas y solicitudes, llaves maestras, olvidados",
        "Cursos del staff",
        "Depuración de usuarios",
    ]),
    ("Auditoría Nocturna", [
        "Revisión de cambios de tarifa (rate change report)",
        "Proceso de auditoría nocturna",
        "Reportes de auditoría nocturna",
    ]),
    ("Mantenimiento y Equipamiento", [
        "Control e inventario de llaves maestras",
        "Orden y limpieza de Check Room",
        "Orden y limpieza del Front",
        "Revisión de equipos, funcionamiento y desempeño",
        "Uso de radio y chicharo",
        "Seguimiento de guardado de reportes de emergencia",
    ]),
]

_ROOM_SIGNAGE = ("EAGS", "EGDLS", "EMTY", "EPUE", "EQRO", "ESLP")

_ROOM_ITEMS = [
    ("Reglamento interior del Hotel", _ROOM_SIGNAGE),
    ("Ruta de evacuación", _ROOM_SIGNAGE),
    "Door hanger",
    "Formato de tintorería y bolsa de tintorería",
    "Control de aire",
    "Mesa de noche (Tarjetón Sabanas)",
    "Pluma",
    "Blog",
    "Face plate",
    "Código Qr directorio de servicio (Señalética en pared)",
    "Instructivo caja fuete",
    "Señalética burro y plancha",
    "Collarín de agua",
    "Vinil esmeril de regadera",
    "Señalética reusó de toallas",
    "Extracto de intervención",
]

_SUITE_EXTRAS = [
    "Letrero de snack son cortesía (suite)",
    "Surtido Snacks en cortesía",
    "Juego de utensilios (4)",
    "Instructructivo cafetera nespresso (Suite)",
    "Información de tina (Suite)",
    "Mural de intervención (Suite)",
]

# (area name, applies_to, items); an item is a description or (description, applies_to)
MARKETING_AREAS = [
    ("Anuncio luminoso", (), [
        "Edificio 1 (motor lobe)",
        "Edificio 2 (Frontal avenida)",
        "Edificio 3 (Lateral Posterior)",
        "Luminoso Tótem",
        "Copete de Tótem",
    ]),
    ("Recepción", (), [
        "Tapete de bienvenida",
        "Rool up artista que intervino el Hotel",
        "Logotipo en vinil esmeril + propiedad operada por+ no fumar + cámara de vigilancia",
        "Letrero de gerente en turno",
        "Tarifario",
        "Aviso de privacidad",
        "Mapa de ubicación del hotel",
        "Tent card porta folletos WR",
        "Condiciones de película roja y logotipo front desk",
        "E concierge ( funcionamiento y Contenido actual)",
        "Mueble porta postales (Condiciones)",
        "Mueble porta postales (Postales)",
        "Condiciones de viniles de artista (Elevador)",
        "Elevadores porta poster",
        "Rol up rome service",
        "Carrito bebida bienvenida (Acrílico)",
        "Caja acrílico de recolección de llaves",
        "Face place (genérico)",
        "Señalética ubicación de maquinas (elevador)",
        "Señalética protección civil",
    ]),
    ("Sala de juntas", (), [
        "Viniles esmeriles",
        "Acrílico con QR Wifi y atención WhatsApp",
        "Funcionamiento de los puertos de carga",
        "Señalética protección civil",
    ]),
    ("The Hub", (), [
        "Pantallas de computadoras de centro de negocios (Wool paper, Screen saber)",
        "Tent card de información (billar)",
        "Tent card de información (futbolito)",
        "Código Qr en mesa",
        "Blondas (existencia / No recicladas)",
        "Menú",
        "Viniles esmeriles (General)",
        "Porta poster (Baños)",
        "Condiciones de pódium",
        "Señalética protección civil",
        "Pizarrón The Hub",
        "Letreros metálicos bebidas",
        "Visualización de platillos",
        "Acrílico en mesa",
    ]),
    ("Mezanine", (), [
        "Acrílico con QR Wifi y atención WhatsApp (dentro de salones)",
        "Roll Up de salones de eventos",
        "Roll Up Genérico (Habitaciones)",
        "Estado de vinil de artista",
        "Porta poster en baños",
        "Señalética protección civil",
        "Señalética Salones de evento",
    ]),
    ("Gimnasio", (), [
        "Condiciones de viniles de artistas en pasillo",
        "Viniles esmeriles de gimnasio",
        "Roll up rutina de gimnasio",
        "Reglamento de gimnasio",
    ]),
    ("Alberca", (), [
        "Viniles esmeriles",
        "Reglamento de alberca",
        "Tapete de entrada alberca",
        "Vinil de artista",
        "Señalética protección civil",
    ]),
    ("2do y 3er Piso", (), [
        "Vending Machine (2do piso)",
    ]),
    ("2do y 3er Piso / Pasillo", (), [
        "Condiciones viniles de artista en pasillo",
        "Viniles esmeriles en pasillo",
        "Señalética protección civil",
        "Señalética solo personal autorizado",
    ]),
    ("Habitación estándar sencilla cama king", (), _ROOM_ITEMS),
    ("Habitación estándar queen con sofá cama", (), _ROOM_ITEMS),
    ("Habitación doble", (), _ROOM_ITEMS),
    ("Habitación junior suite", (), _ROOM_ITEMS + _SUITE_EXTRAS),
    ("Habitación suite relax", (), _ROOM_ITEMS + _SUITE_EXTRAS + ["Juego de utensilios (2)"]),
    ("Sótano", ("EGDLS", "EMTY", "EQRO"), [
        "Direccionamiento vial",
        ("Elevador de sótano a planta baja porta poster", ("EMTY", "EQRO")),
        ("Mural de sótano", ("EMTY", "EQRO")),
        ("Viniles esmeril", ("EMTY", "EQRO")),
    ]),
    ("Autos de mensajería", (), ["Rotulos y medallones"]),
    ("Música ambiental", (), ["Música ambiental"]),
    ("Canales de información", (), ["Canales de información"]),
    ("Atención a cliente WHATSAPP", (), [
        "tiempo de espera",
        "Géneros de música y horarios en Hoteles Encore",
        "Calificación final",
    ]),
]


def _applies(applies_to, property_code: Optional[str]) -> bool:
    if not applies_to or not property_code:
        return True
    return property_code.upper() in applies_to


def _normalize(text: str) -> str:
    return ' '.join(text.split())


def _build(areas) -> List[Dict]:
    return [
        {
            'area_name': name,
            'area_order': area_index,
            'items': [
                {'item_order': item_index, 'descripcion': _normalize(text)}
                for item_index, text in enumerate(items)
            ],
        }
        for area_index, (name, items) in enumerate(areas)
    ]


def get_marketing_template(property_code: Optional[str] = None) -> List[Dict]:
    """Marketing areas for one property; areas left without items are dropped."""
    filtered = []
    for name, applies_to, items in MARKETING_AREAS:
        if not _applies(applies_to, property_code):
            continue
        texts = []
        for item in items:
            text, item_applies = (item, ()) if isinstance(item, str) else item
            if _applies(item_applies, property_code):
                texts.append(text)
        if texts:
            filtered.append((name, texts))
    return _build(filtered)


def get_template(department: str, property_code: Optional[str] = None) -> List[Dict]:
    if department == Inspection.RRHH:
        return _build(RRHH_AREAS)
    if department == Inspection.GSH:
        return _build(GSH_AREAS)
    if department == Inspection.MARKETING:
        return get_marketing_template(property_code)
    raise KeyError(department)
