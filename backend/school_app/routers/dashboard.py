from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from school_app import crud, models, schemas
from school_app.dependencies import get_db, get_session_context

router = APIRouter(tags=["Dashboard"])

PANELS = {
    models.UserRole.admin: (
        "Admin Panel",
        "Manage teachers, students, and system settings for the entire school.",
    ),
    models.UserRole.teacher: (
        "Teacher Panel",
        "Manage your classes, attendance, and grades for your students.",
    ),
    models.UserRole.student: (
        "Student Panel",
        "View your classes, marks, and attendance in one place.",
    ),
}


@router.get("/dashboard", response_model=schemas.DashboardOut, summary="Role overview for the signed-in user")
def get_dashboard(
    db: Session = Depends(get_db),
    ctx: schemas.SessionContext = Depends(get_session_context),
):
    title, description = PANELS[ctx.role]
    summary = schemas.DashboardOut(
        email=ctx.email,
        role=ctx.role,
        panel_title=title,
        panel_description=description,
    )

    if ctx.role == models.UserRole.student:
        me = crud.get_student_by_email(db, ctx.email)
        if me and me.class_name:
            summary.student_class = me.class_name
            summary.assignment_count = crud.count_assignments_for_class(db, me.class_name)
    return summary
