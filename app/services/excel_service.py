"""
Excel processing service for attendee import/export
"""

import io
import logging
from typing import List, Dict, Tuple
import pandas as pd
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models import Attendee, Event
from app.services.qr_service import QRService

logger = logging.getLogger(__name__)

class ExcelService:
    """Service for handling Excel operations"""

    TEMPLATE_COLUMNS = ['Name', 'Email', 'Phone', 'ID Number', 'Staff ID']
    REQUIRED_COLUMNS = ['name']

    # normalized header -> attendee column
    COLUMN_ALIASES = {
        'name': 'name',
        'full name': 'name',
        'email': 'email',
        'phone': 'phone',
        'id number': 'identification_number',
        'identification number': 'identification_number',
        'staff id': 'staff_id',
    }

    @staticmethod
    def create_template() -> bytes:
        """Create Excel template with the attendee columns"""
        df = pd.DataFrame(columns=ExcelService.TEMPLATE_COLUMNS)

        # Add sample data for guidance
        sample_data = [
            ['Sample Attendee 1', 'attendee1@example.com', '+60 12-345 6789', 'ID-0001', ''],
            ['Sample Attendee 2', 'attendee2@example.com', '', 'ID-0002', ''],
            ['Sample Staff 1', '', '', '', 'STF-001'],
        ]

        for row in sample_data:
            df.loc[len(df)] = row

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            df.to_excel(writer, index=False, sheet_name='Attendees')

        return buffer.getvalue()

    @staticmethod
    def column_mapping(df: pd.DataFrame) -> Dict[str, str]:
        """Map attendee fields to the sheet's own header names"""
        mapping = {}
        for col in df.columns:
            field = ExcelService.COLUMN_ALIASES.get(str(col).lower().strip())
            if field and field not in mapping:
                mapping[field] = col
        return mapping

    @staticmethod
    def validate_excel_structure(df: pd.DataFrame) -> Tuple[bool, List[str]]:
        """Validate Excel file structure"""
        errors = []

        mapping = ExcelService.column_mapping(df)
        missing_columns = [col for col in ExcelService.REQUIRED_COLUMNS if col not in mapping]

        if missing_columns:
            errors.append(f"Missing required columns: {', '.join(missing_columns)}")

        return len(errors) == 0, errors

    @staticmethod
    def validate_data_constraints(df: pd.DataFrame, event: Event, existing_count: int) -> Tuple[bool, List[str]]:
        """Validate duplicate ID numbers and the event's attendee limit"""
        errors = []
        mapping = ExcelService.column_mapping(df)

        if 'identification_number' in mapping:
            ids = df[mapping['identification_number']].dropna().astype(str).str.strip()
            ids = ids[ids != '']
            counts = ids.value_counts()
            for id_number, count in counts[counts > 1].items():
                errors.append(f"Duplicate ID number '{id_number}' ({count} times)")

        if event.max_attendees:
            # Same rule as the import loop: blank or whitespace-only names are skipped
            incoming = sum(1 for _, row in df.iterrows() if ExcelService._cell(row, mapping, 'name'))
            if existing_count + incoming > event.max_attendees:
                errors.append(
                    f"Import would bring the event to {existing_count + incoming} attendees (max {event.max_attendees})"
                )

        return len(errors) == 0, errors

    @staticmethod
    def _cell(row, mapping: Dict[str, str], field: str):
        if field not in mapping:
            return None
        value = row[mapping[field]]
        if pd.isna(value):
            return None
        value = str(value).strip()
        return value or None

    @staticmethod
    def process_excel_upload(
        file_content: bytes,
        event: Event,
        db: Session
    ) -> Tuple[bool, List[str], List[Attendee]]:
        """Import attendees from an uploaded sheet"""
        try:
            df = pd.read_excel(io.BytesIO(file_content), dtype=str)

            valid_structure, structure_errors = ExcelService.validate_excel_structure(df)
            if not valid_structure:
                return False, structure_errors, []

            existing_count = db.query(func.count(Attendee.id)).filter(Attendee.event_id == event.id).scalar()
            valid_data, data_errors = ExcelService.validate_data_constraints(df, event, existing_count)
            if not valid_data:
                return False, data_errors, []

            mapping = ExcelService.column_mapping(df)
            created = []

            for _, row in df.iterrows():
                name = ExcelService._cell(row, mapping, 'name')
                # Skip empty rows
                if not name:
                    continue

                attendee = Attendee(
                    event_id=event.id,
                    name=name,
                    email=ExcelService._cell(row, mapping, 'email'),
                    phone=ExcelService._cell(row, mapping, 'phone'),
                    identification_number=ExcelService._cell(row, mapping, 'identification_number'),
                    staff_id=ExcelService._cell(row, mapping, 'staff_id'),
                    checked_in=False
                )
                db.add(attendee)
                created.append(attendee)

            # ids are needed for the check-in links
            db.flush()
            for attendee in created:
                attendee.qr_code = QRService.generate_checkin_qr(attendee.id)

            db.commit()
            logger.info(f"Imported {len(created)} attendees into event {event.id}")
            return True, [], created

        except Exception as e:
            db.rollback()
            logger.error(f"Attendee import failed for event {event.id}: {e}")
            return False, [f"Error processing Excel file: {str(e)}"], []

    @staticmethod
    def export_attendees(attendees: List[Attendee]) -> bytes:
        """Export attendees with seat and check-in state to Excel"""
        data = []
        for attendee in attendees:
            data.append({
                'Name': attendee.name,
                'Email': attendee.email or '',
                'Phone': attendee.phone or '',
                'ID Number': attendee.identification_number or '',
                'Staff ID': attendee.staff_id or '',
                'Event': attendee.event.name if attendee.event else '',
                'Table': attendee.table.table_number if attendee.table else '',
                'Checked In': 'Yes' if attendee.checked_in else 'No',
            })

        df = pd.DataFrame(data, columns=ExcelService.TEMPLATE_COLUMNS + ['Event', 'Table', 'Checked In'])

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            df.to_excel(writer, index=False, sheet_name='Attendees')

        return buffer.getvalue()
