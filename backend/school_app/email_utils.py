import logging
from html import escape

from fastapi_mail import FastMail, MessageSchema, ConnectionConfig, MessageType

from school_app.core import config

logger = logging.getLogger(__name__)


def get_mail_config() -> ConnectionConfig:
    return ConnectionConfig(
        MAIL_USERNAME=config.MAIL_USERNAME,
        MAIL_PASSWORD=config.MAIL_PASSWORD,
        MAIL_FROM=config.MAIL_FROM,
        MAIL_PORT=config.MAIL_PORT,
        MAIL_SERVER=config.MAIL_SERVER,
        MAIL_STARTTLS=True,
        MAIL_SSL_TLS=False,
        USE_CREDENTIALS=bool(config.MAIL_USERNAME),
    )


def build_admission_inquiry_html(student_name: str, email: str, grade: str, message: str) -> str:
    return f"""
    <html>
        <body>
            <h3>New admission inquiry</h3>
            <p>A new admission inquiry has been submitted from your website.</p>
            <table>
                <tr><td><strong>Student name</strong></td><td>{escape(student_name)}</td></tr>
                <tr><td><strong>Parent email</strong></td><td><a href="mailto:{escape(email)}">{escape(email)}</a></td></tr>
                <tr><td><strong>Requested grade</strong></td><td>{escape(grade)}</td></tr>
            </table>
            <h4>Message</h4>
            <p style="white-space: pre-wrap;">{escape(message)}</p>
            <p><small>You are receiving this email because someone submitted the admission interest form on your school website.</small></p>
        </body>
    </html>
    """


async def send_admission_inquiry_email(student_name: str, email: str, grade: str, message: str) -> bool:
    """
    Notifies the admissions inbox and the submitter. Best effort: failures
    are logged and reported as False, never raised.
    """
    if not config.mail_enabled():
        logger.warning("Mail server or admissions inbox not configured; skipping email send.")
        return False

    try:
        mail = MessageSchema(
            subject="New admission inquiry",
            recipients=[config.ADMISSIONS_INBOX_EMAIL, email],
            body=build_admission_inquiry_html(student_name, email, grade, message),
            subtype=MessageType.html,
        )
        logger.info(f"Sending admission inquiry email to {config.ADMISSIONS_INBOX_EMAIL} and parent {email}")
        fm = FastMail(get_mail_config())
        await fm.send_message(mail)
    except Exception as exc:
        logger.error(f"Error sending admission inquiry email: {exc}", exc_info=True)
        return False

    logger.info("Admission inquiry email sent to school and parent")
    return True
