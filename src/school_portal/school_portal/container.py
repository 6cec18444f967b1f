from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from .analytics.service import AnalyticsService
from .approvals.aggregator import BatchAggregator
from .approvals.state_machine import ReviewStateMachine
from .attendance.service import AttendanceService
from .calendar_events.service import CalendarService
from .common.datetime_utils import now_utc
from .courses.service import CourseService, EnrollmentService
from .database.connection import DBConfig, DatabaseConnection
from .fees.service import FeeService
from .grading.service import GradingService
from .hostels.service import HostelService
from .notifications.notifier import Notifier, StoreNotifier
from .notifications.service import NotificationService
from .results.service import ResultService
from .store.files import LocalFileStorage
from .store.mysql_record_store import MySQLRecordStore
from .store.repository import RecordStore
from .users.service import UserService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]
    store: RecordStore
    notifier: Notifier

    aggregator: BatchAggregator
    reviews: ReviewStateMachine

    user_service: UserService
    course_service: CourseService
    enrollment_service: EnrollmentService
    attendance_service: AttendanceService
    fee_service: FeeService
    hostel_service: HostelService
    grading_service: GradingService
    result_service: ResultService
    analytics_service: AnalyticsService
    calendar_service: CalendarService
    notification_service: NotificationService


def wire_services(
    store: RecordStore,
    *,
    notifier: Optional[Notifier] = None,
    conn: Optional[DatabaseConnection] = None,
    clock: Callable = now_utc,
) -> Container:
    notifier = notifier or StoreNotifier(store, clock=clock)
    aggregator = BatchAggregator(store, clock=clock)
    reviews = ReviewStateMachine(store, notifier, clock=clock)

    user_service = UserService(store, clock=clock)
    course_service = CourseService(store, user_service, clock=clock)
    enrollment_service = EnrollmentService(store, course_service, user_service, aggregator, reviews)
    attendance_service = AttendanceService(
        store, course_service, enrollment_service, user_service, aggregator, reviews, clock=clock
    )
    fee_service = FeeService(store, user_service, aggregator, reviews, clock=clock)
    hostel_service = HostelService(store, user_service, enrollment_service, aggregator, reviews, clock=clock)
    grading_service = GradingService(store, course_service, enrollment_service, notifier, clock=clock)
    result_service = ResultService(store, user_service, course_service, notifier, clock=clock)

    return Container(
        conn=conn,
        store=store,
        notifier=notifier,
        aggregator=aggregator,
        reviews=reviews,
        user_service=user_service,
        course_service=course_service,
        enrollment_service=enrollment_service,
        attendance_service=attendance_service,
        fee_service=fee_service,
        hostel_service=hostel_service,
        grading_service=grading_service,
        result_service=result_service,
        analytics_service=AnalyticsService(store),
        calendar_service=CalendarService(store, clock=clock),
        notification_service=NotificationService(store),
    )


def build_container(*, db_config: dict, upload_dir: str, upload_base_url: str) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    store = MySQLRecordStore(conn, LocalFileStorage(upload_dir, upload_base_url))
    return wire_services(store, conn=conn)
