"""CSV serialization of applications for export, and lenient parsing for import.

Encoding follows the usual CSV quoting rules. Decoding uses a small scanner
that flips an "inside quotes" flag on every double quote and splits on commas
outside quotes. Quote characters themselves are dropped, so a doubled quote
inside a quoted field disappears instead of becoming a single quote. Files
written by ``encode_applications`` lose embedded double quotes on re-import.
"""
import codecs
import logging
import re
from datetime import datetime
from typing import AsyncIterable, AsyncIterator, Callable, Iterable, Iterator, List, Optional

from jobtracker_backend.config.global_constants import (
    CSV_HEADER, CSV_DATE_FORMATS, ApplicationStatus, JobType, RemoteStatus
)
from jobtracker_backend.modules.models.storage import JobApplication, SalaryRange
from jobtracker_backend.modules.utils import current_millis, from_millis, to_millis

logger = logging.getLogger(__name__)

DEFAULT_EXPORT_DATE_FORMAT = '%Y-%m-%d'

_NON_DIGITS = re.compile(r'[^0-9]')


def escape_csv(value: str) -> str:
    """Quote a field containing a comma, quote or newline, doubling inner quotes"""
    if ',' in value or '"' in value or '\n' in value:
        return '"' + value.replace('"', '""') + '"'
    return value


def encode_row(values: Iterable[str]) -> str:
    return ','.join(escape_csv(v) for v in values) + '\n'


def application_to_values(application: JobApplication, date_format: str = DEFAULT_EXPORT_DATE_FORMAT) -> List[str]:
    """Column values of one application, in CSV_HEADER order"""
    salary = application.salary_range
    return [
        application.company_name,
        application.job_title,
        application.status.display_name,
        from_millis(application.application_date).strftime(date_format),
        application.company_location or '',
        application.job_type.display_name if application.job_type else '',
        application.remote_status.display_name if application.remote_status else '',
        str(salary.min) if salary and salary.min is not None else '',
        str(salary.max) if salary and salary.max is not None else '',
        application.notes or '',
        application.job_link or '',
    ]


def iter_encoded_rows(
    applications: Iterable[JobApplication],
    date_format: str = DEFAULT_EXPORT_DATE_FORMAT
) -> Iterator[str]:
    """Header line followed by one line per application, each ending in a newline"""
    yield encode_row(CSV_HEADER)
    for application in applications:
        yield encode_row(application_to_values(application, date_format))


def encode_applications(
    applications: Iterable[JobApplication],
    date_format: str = DEFAULT_EXPORT_DATE_FORMAT
) -> str:
    return ''.join(iter_encoded_rows(applications, date_format))


def parse_csv_line(line: str) -> List[str]:
    """Split one line on commas outside double quotes. Quote characters are not kept."""
    values = []
    current = []
    in_quotes = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == ',' and not in_quotes:
            values.append(''.join(current))
            current = []
        else:
            current.append(char)
    values.append(''.join(current))

    return values


def parse_status(value: Optional[str]) -> ApplicationStatus:
    """Infer a status from free text, defaulting to APPLIED"""
    if value is None:
        return ApplicationStatus.APPLIED
    v = value.strip().lower()
    if 'interview' in v:
        return ApplicationStatus.INTERVIEW
    if 'offer' in v:
        return ApplicationStatus.OFFER
    if 'rejected' in v and 'me' in v:
        return ApplicationStatus.REJECTED_BY_ME
    if 'rejected' in v:
        return ApplicationStatus.REJECTED_BY_COMPANY
    if 'ghost' in v:
        return ApplicationStatus.GHOSTED
    if 'email' in v:
        return ApplicationStatus.EMAIL
    if 'phone' in v:
        return ApplicationStatus.PHONE
    return ApplicationStatus.APPLIED


def parse_job_type(value: Optional[str]) -> Optional[JobType]:
    if value is None:
        return None
    v = value.strip().lower()
    if 'full' in v:
        return JobType.FULL_TIME
    if 'part' in v:
        return JobType.PART_TIME
    if 'contract' in v:
        return JobType.CONTRACT
    if 'freelance' in v:
        return JobType.FREELANCE
    return None


def parse_remote_status(value: Optional[str]) -> Optional[RemoteStatus]:
    if value is None:
        return None
    v = value.strip().lower()
    if 'remote' in v and 'hybrid' not in v:
        return RemoteStatus.REMOTE
    if 'hybrid' in v:
        return RemoteStatus.HYBRID
    if 'on-site' in v or 'onsite' in v or 'office' in v:
        return RemoteStatus.ON_SITE
    return None


def parse_date(value: Optional[str], now: Callable[[], int] = current_millis) -> int:
    """Parse a date in the first matching accepted format as local midnight.

    Falls back to the current time when nothing matches.
    """
    if value is not None:
        v = value.strip()
        for date_format in CSV_DATE_FORMATS:
            try:
                return to_millis(datetime.strptime(v, date_format))
            except ValueError:
                continue
    return now()


def _parse_amount(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    digits = _NON_DIGITS.sub('', value.strip())
    return int(digits) if digits else None


def parse_salary_range(min_value: Optional[str], max_value: Optional[str]) -> Optional[SalaryRange]:
    """Salary bounds from two free-text cells. A missing bound takes the other's value."""
    salary_min = _parse_amount(min_value)
    salary_max = _parse_amount(max_value)
    if salary_min is None and salary_max is None:
        return None
    return SalaryRange(
        min=salary_min if salary_min is not None else salary_max,
        max=salary_max if salary_max is not None else salary_min,
    )


def _optional_text(values: List[str], index: int) -> Optional[str]:
    if index >= len(values):
        return None
    text = values[index].strip()
    return text or None


def _field(values: List[str], index: int) -> Optional[str]:
    return values[index] if index < len(values) else None


def decode_line(line: str, now: Callable[[], int] = current_millis) -> Optional[JobApplication]:
    """Build an unsaved application from one CSV data line, or None if the row is unusable"""
    values = parse_csv_line(line)
    if len(values) < 2:
        return None

    company_name = values[0].strip()
    job_title = values[1].strip()
    if not company_name or not job_title:
        return None

    return JobApplication(
        company_name=company_name,
        job_title=job_title,
        status=parse_status(_field(values, 2)),
        application_date=parse_date(_field(values, 3), now),
        company_location=_optional_text(values, 4),
        job_type=parse_job_type(_field(values, 5)),
        remote_status=parse_remote_status(_field(values, 6)),
        salary_range=parse_salary_range(_field(values, 7), _field(values, 8)),
        notes=_optional_text(values, 9),
        job_link=_optional_text(values, 10),
    )


def _decode_data_line(line_number: int, line: str, now: Callable[[], int]) -> Optional[JobApplication]:
    line = line.rstrip('\r\n')
    if not line.strip():
        return None
    try:
        application = decode_line(line, now)
    except Exception as e:
        logger.debug(f"Skipping CSV line {line_number}: {e}")
        return None
    if application is None:
        logger.debug(f"Skipping CSV line {line_number}: company or job title missing")
    return application


def decode_lines(lines: Iterable[str], now: Callable[[], int] = current_millis) -> Iterator[JobApplication]:
    """Lazily decode data lines. The first line is the header; blank and invalid lines are skipped."""
    iterator = iter(lines)
    next(iterator, None)

    for line_number, line in enumerate(iterator, start=2):
        application = _decode_data_line(line_number, line, now)
        if application is not None:
            yield application


async def adecode_lines(
    lines: AsyncIterable[str],
    now: Callable[[], int] = current_millis
) -> AsyncIterator[JobApplication]:
    """Async counterpart of ``decode_lines``"""
    line_number = 0
    async for line in lines:
        line_number += 1
        if line_number == 1:
            continue
        application = _decode_data_line(line_number, line, now)
        if application is not None:
            yield application


async def iter_text_lines(chunks: AsyncIterable[bytes], encoding: str = 'utf-8') -> AsyncIterator[str]:
    """Decode a byte stream incrementally and yield it line by line.

    Only the current partial line is held in memory. Characters split across
    chunks are joined by the incremental decoder; invalid bytes raise
    UnicodeDecodeError.
    """
    decoder = codecs.getincrementaldecoder(encoding)()
    pending = ''
    async for chunk in chunks:
        pending += decoder.decode(chunk)
        *lines, pending = pending.split('\n')
        for line in lines:
            yield line + '\n'
    pending += decoder.decode(b'', final=True)
    if pending:
        yield pending


def decode_csv(text: str, now: Callable[[], int] = current_millis) -> List[JobApplication]:
    return list(decode_lines(text.splitlines(), now))
