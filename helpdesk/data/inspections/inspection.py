from helpdesk import db
from helpdesk.data.core.user_created_base import UserCreatedBase


class Inspection(UserCreatedBase):
    """
    Department checklist run against one property.

    RRHH, GSH and Marketing inspections share this table; the checklist
    content comes from the department template at creation time.
    """
    __tablename__ = 'inspections'

    RRHH = 'RRHH'
    GSH = 'GSH'
    MARKETING = 'MARKETING'
    DEPARTMENTS = (RRHH, GSH, MARKETING)

    DEPARTMENT_LABELS = {
        RRHH: 'Human Resources',
        GSH: 'Guest Services & Hospitality',
        MARKETING: 'Marketing',
    }

    DRAFT = 'draft'
    COMPLETED = 'completed'
    APPROVED = 'approved'
    REJECTED = 'rejected'
    STATUSES = (DRAFT, COMPLETED, APPROVED, REJECTED)

    department = db.Column(db.String(20), nullable=False)
    location_id = db.Column(db.Integer, db.ForeignKey('locations.id'), nullable=False)
    inspector_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    inspector_name = db.Column(db.String(200))
    inspection_date = db.Column(db.Date, nullable=False)
    property_code = db.Column(db.String(20))
    property_name = db.Column(db.String(200))
    status = db.Column(db.String(20), nullable=False, default=DRAFT)
    general_comments = db.Column(db.Text)
    completed_at = db.Column(db.DateTime)
    reviewed_by_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    reviewed_at = db.Column(db.DateTime)
    review_notes = db.Column(db.Text)

    # Computed by the scoring step on every save
    total_areas = db.Column(db.Integer, default=0)
    total_items = db.Column(db.Integer, default=0)
    items_cumple = db.Column(db.Integer, default=0)
    items_no_cumple = db.Column(db.Integer, default=0)
    items_na = db.Column(db.Integer, default=0)
    items_pending = db.Column(db.Integer, default=0)
    coverage_percentage = db.Column(db.Integer, default=0)
    compliance_percentage = db.Column(db.Integer, default=0)
    average_score = db.Column(db.Float, default=0)

    location = db.relationship('Location', foreign_keys=[location_id])
    inspector = db.relationship('User', foreign_keys=[inspector_id])
    reviewed_by = db.relationship('User', foreign_keys=[reviewed_by_id])
    areas = db.relationship('InspectionArea', order_by='InspectionArea.area_order',
                            cascade='all, delete-orphan', back_populates='inspection')
    items = db.relationship('InspectionItem', order_by='InspectionItem.item_order',
                            cascade='all, delete-orphan')

    @property
    def department_label(self):
        return self.DEPARTMENT_LABELS.get(self.department, self.department)

    @property
    def is_draft(self):
        return self.status == self.DRAFT

    def __repr__(self):
        return f'<Inspection {self.id} {self.department} {self.status}>'


class InspectionArea(db.Model):
    __tablename__ = 'inspection_areas'

    id = db.Column(db.Integer, primary_key=True)
    inspection_id = db.Column(db.Integer, db.ForeignKey('inspections.id'), nullable=False)
    area_name = db.Column(db.String(200), nullable=False)
    area_order = db.Column(db.Integer, nullable=False, default=0)
    calculated_score = db.Column(db.Float, default=0)

    inspection = db.relationship('Inspection', back_populates='areas')
    items = db.relationship('InspectionItem', order_by='InspectionItem.item_order',
                            back_populates='area')

    def __repr__(self):
        return f'<InspectionArea {self.area_name}>'


class InspectionItem(db.Model):
    __tablename__ = 'inspection_items'

    CUMPLE = 'Cumple'
    NO_CUMPLE = 'No Cumple'
    NA = 'N/A'
    PENDING = ''
    COMPLIANCE_VALUES = (PENDING, CUMPLE, NO_CUMPLE, NA)

    id = db.Column(db.Integer, primary_key=True)
    inspection_id = db.Column(db.Integer, db.ForeignKey('inspections.id'), nullable=False)
    area_id = db.Column(db.Integer, db.ForeignKey('inspection_areas.id'), nullable=False)
    item_order = db.Column(db.Integer, nullable=False, default=0)
    descripcion = db.Column(db.Text, nullable=False)
    tipo_dato = db.Column(db.String(20), default='Fijo')
    cumplimiento_valor = db.Column(db.String(20), nullable=False, default=PENDING)
    calif_valor = db.Column(db.Integer, nullable=False, default=0)
    comentarios_valor = db.Column(db.Text, default='')

    area = db.relationship('InspectionArea', back_populates='items')

    @property
    def is_evaluated(self):
        return self.cumplimiento_valor != self.PENDING

    def __repr__(self):
        return f'<InspectionItem {self.id} {self.cumplimiento_valor or "pending"}>'
