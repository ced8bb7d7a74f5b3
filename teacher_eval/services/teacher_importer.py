from __future__ import annotations
from pathlib import Path
from io import TextIOWrapper
import csv, logging, re
from typing import Dict, Any, List, Optional

import openpyxl

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction

from accounts.models import Role
from accounts.serializers.user_serializer import unique_username, username_from_email
from teacher_eval.models import School, Specialty, Teacher, TeacherCategory

logger = logging.getLogger(__name__)
User = get_user_model()

NATIONAL_ID_RE = re.compile(r"^\d{10}$")

# ------------------ Public API ------------------

def parse_teacher_rows(request) -> List[Dict[str, Any]]:
    """Return list[dict] from JSON array OR multipart CSV/XLSX under 'file' key."""
    if "file" in request.FILES:
        f = request.FILES["file"]
        suffix = Path(f.name).suffix.lower()
        if suffix == ".csv":
            text = TextIOWrapper(f.file, encoding="utf-8-sig", newline="")
            rows = list(csv.DictReader(text))
            if not rows:
                raise ValueError("CSV appears empty.")
            return rows
        if suffix == ".xlsx":
            wb = openpyxl.load_workbook(f, data_only=True, read_only=True)
            ws = wb.active
            header_row = next(ws.iter_rows(min_row=1, max_row=1, values_only=True), ())
            headers = [str(v).strip() if v is not None else "" for v in header_row]
            rows = []
            for r in ws.iter_rows(min_row=2, values_only=True):
                if all(v is None for v in r):
                    continue
                rows.append({headers[i]: r[i] for i in range(min(len(headers), len(r)))})
            if not rows:
                raise ValueError("XLSX sheet appears empty.")
            return rows
        raise ValueError("Unsupported file type. Upload CSV or XLSX.")
    # JSON
    data = request.data
    if not isinstance(data, list):
        raise ValueError('Expected a JSON array or upload a file as "file".')
    return data


def import_teachers(rows: List[Dict[str, Any]], school: Optional[School], *, added_by: str = "",
                    dry_run: bool = False, update_existing: bool = False) -> Dict[str, Any]:
    """
    Bulk import teachers into `school`.

    Every row gets a result entry; a bad row does not stop the others.
    Upsert key = national id. A row with an email also gets a login account
    with the default import password.
    """
    results: List[Dict[str, Any]] = []
    created = updated = 0
    seen_ids = set()
    taken_usernames: set = set()

    with transaction.atomic():
        for row in _clean(rows):
            result = {
                "row": row["__row"],
                "national_id": row["national_id"] or "",
                "name": row["name"] or "",
                "specialty": row["specialty"] or "",
                "mobile": row["mobile"] or "",
                "added_by": added_by,
                "status": "success",
                "message": "",
            }
            error = _row_error(row, seen_ids)
            existing = None
            if error is None:
                existing = Teacher.objects.filter(national_id=row["national_id"]).first()
                if existing is not None and not update_existing:
                    error = "رقم الهوية مسجل مسبقاً"
                elif row["email"] and _email_taken(row["email"], existing):
                    error = "البريد الإلكتروني مستخدم بالفعل"
            if error:
                result.update(status="failed", message=error)
                results.append(result)
                continue
            seen_ids.add(row["national_id"])

            if not dry_run:
                if existing is not None:
                    _update_teacher(existing, row, school)
                    updated += 1
                else:
                    _create_teacher(row, school, taken_usernames)
                    created += 1
            result["message"] = "updated" if existing is not None else "created"
            results.append(result)

    failed = sum(1 for r in results if r["status"] == "failed")
    logger.info("Teacher import into %s: %s created, %s updated, %s failed (dry_run=%s)",
                getattr(school, "pk", None), created, updated, failed, dry_run)
    return {
        "status": "validated" if dry_run else "imported",
        "created": created,
        "updated": updated,
        "succeeded": len(results) - failed,
        "failed": failed,
        "results": results,
    }


# ------------------ Helpers ------------------

def _norm_key(s: str) -> str:
    return re.sub(r"[\s_\-]+", "", str(s)).lower()


def _norm_category(value) -> Optional[str]:
    """Accept stored values or Arabic labels; blank means the default category."""
    if value is None or value == "":
        return TeacherCategory.TEACHER
    key = _norm_key(value)
    for v, lbl in TeacherCategory.choices:
        if key in (_norm_key(v), _norm_key(lbl)):
            return v
    return None


def _clean(rows: List[Dict[str, Any]]):
    def pick(d, *keys):
        for k in keys:
            if k in d and d[k] not in [None, ""]:
                return str(d[k]).strip()
        return None

    for i, r in enumerate(rows, start=1):
        if not isinstance(r, dict):
            r = {}
        national_id = pick(r, "national_id", "National ID", "رقم الهوية", "nationalId")
        # spreadsheets hand back numeric cells as floats
        if national_id and national_id.endswith(".0"):
            national_id = national_id[:-2]
        raw_category = pick(r, "category", "Category", "الفئة")
        yield {
            "__row": i,
            "national_id": national_id,
            "name": pick(r, "name", "Name", "الاسم"),
            "specialty": pick(r, "specialty", "Specialty", "التخصص"),
            "mobile": pick(r, "mobile", "Mobile", "Phone", "الجوال"),
            "email": pick(r, "email", "Email", "البريد الإلكتروني"),
            "raw_category": raw_category,
            "category": _norm_category(raw_category),
        }


def _row_error(row, seen_ids) -> Optional[str]:
    if not row["name"]:
        return "الاسم مطلوب"
    if not row["national_id"] or not NATIONAL_ID_RE.match(row["national_id"]):
        return "رقم الهوية غير صحيح"
    if row["national_id"] in seen_ids:
        return "رقم الهوية مكرر في الملف"
    if row["category"] is None:
        return f'فئة غير معروفة: {row["raw_category"]}'
    return None


def _email_taken(email: str, existing: Optional[Teacher]) -> bool:
    qs = User.objects.filter(email__iexact=email)
    if existing is not None and existing.user_id:
        qs = qs.exclude(pk=existing.user_id)
    return qs.exists()


def _remember_specialty(name: Optional[str]) -> None:
    if name:
        Specialty.objects.get_or_create(name=name)


def _create_teacher(row, school: Optional[School], taken_usernames: set) -> Teacher:
    user = None
    if row["email"]:
        username = unique_username(username_from_email(row["email"]))
        while username in taken_usernames:
            username = unique_username(f"{username}-x")
        taken_usernames.add(username)
        user = User(
            username=username,
            email=row["email"],
            name=row["name"],
            national_id=row["national_id"],
            phone=row["mobile"] or "",
            role=Role.TEACHER,
            is_default_password=True,
        )
        user.set_password(settings.IMPORTED_TEACHER_PASSWORD)
        user.save()
    _remember_specialty(row["specialty"])
    return Teacher.objects.create(
        national_id=row["national_id"],
        name=row["name"],
        specialty=row["specialty"] or "",
        category=row["category"],
        mobile=row["mobile"] or "",
        school=school,
        user=user,
    )


def _update_teacher(teacher: Teacher, row, school: Optional[School]) -> Teacher:
    teacher.name = row["name"]
    if row["specialty"]:
        teacher.specialty = row["specialty"]
    if row["mobile"]:
        teacher.mobile = row["mobile"]
    if row["raw_category"]:
        teacher.category = row["category"]
    if school is not None:
        teacher.school = school
    teacher.save()
    _remember_specialty(row["specialty"])
    return teacher
