from django.utils import timezone

from rest_framework import serializers

from attendance.models import PunchType, TimeLog

VERIFY_MODES = {
    "check_in": PunchType.CHECKIN,
    "checkin": PunchType.CHECKIN,
    "check_out": PunchType.CHECKOUT,
    "checkout": PunchType.CHECKOUT,
}


class TimeLogSerializer(serializers.ModelSerializer):
    """Serializer for persisted time logs."""

    employeeId = serializers.IntegerField(source="employee_id", read_only=True)
    logTime = serializers.DateTimeField(source="log_time", read_only=True)

    class Meta:
        model = TimeLog
        fields = ["id", "employeeId", "logTime", "type", "source"]


class TimeLogCreateSerializer(serializers.Serializer):
    """Payload of ``POST /api/time-logs``.

    A request with ``employeeId`` and no ``faceDescriptor`` is a manual entry;
    anything else goes through face matching.
    """

    employeeId = serializers.IntegerField(required=False, allow_null=True)
    faceDescriptor = serializers.JSONField(required=False, allow_null=True)
    type = serializers.ChoiceField(choices=PunchType.choices)

    def validate(self, attrs):
        if attrs.get("faceDescriptor") in (None, "") and attrs.get("employeeId") is None:
            raise serializers.ValidationError(
                "Either 'faceDescriptor' or 'employeeId' must be provided."
            )
        return attrs

    @property
    def is_manual(self) -> bool:
        data = self.validated_data
        return data.get("employeeId") is not None and data.get("faceDescriptor") in (None, "")


class VerifySerializer(serializers.Serializer):
    descriptor = serializers.JSONField()
    mode = serializers.ChoiceField(choices=sorted(VERIFY_MODES))

    def validate_mode(self, value):
        return VERIFY_MODES[value]


class FaceProfileSerializer(serializers.Serializer):
    faceDescriptor = serializers.JSONField()


class WorkDateQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)

    def get_work_date(self):
        return self.validated_data.get("date") or timezone.localdate()


def build_attendance_payload(outcome) -> dict:
    """Render an accepted punch the way both punch endpoints answer it."""

    employee = outcome.employee
    department = employee.department
    return {
        "success": True,
        "employee": {
            "id": employee.pk,
            "firstName": employee.first_name,
            "lastName": employee.last_name,
            "employeeId": employee.employee_code,
        },
        "department": department.name if department else None,
        "distance": outcome.distance,
        "logTime": serializers.DateTimeField().to_representation(outcome.time_log.log_time),
        "timeLog": TimeLogSerializer(outcome.time_log).data,
        "message": outcome.message,
    }
