"""Well-known telemetry tag keys understood by the ingestion service."""


class TelemetryTagKeys:
    """Tag key constants."""

    APPLICATION_VER = "ai.application.ver"
    CLOUD_ROLE = "ai.cloud.role"
    CLOUD_ROLE_INSTANCE = "ai.cloud.roleInstance"
    DEVICE_ID = "ai.device.id"
    DEVICE_LOCALE = "ai.device.locale"
    DEVICE_MODEL = "ai.device.model"
    DEVICE_OEM_NAME = "ai.device.oemName"
    DEVICE_OS_VERSION = "ai.device.osVersion"
    DEVICE_TYPE = "ai.device.type"
    INTERNAL_AGENT_VERSION = "ai.internal.agentVersion"
    INTERNAL_NODE_NAME = "ai.internal.nodeName"
    INTERNAL_SDK_VERSION = "ai.internal.sdkVersion"
    LOCATION_CITY = "ai.location.city"
    LOCATION_COUNTRY = "ai.location.country"
    LOCATION_IP = "ai.location.ip"
    LOCATION_PROVINCE = "ai.location.province"
    OPERATION_CORRELATION_VECTOR = "ai.operation.correlationVector"
    OPERATION_ID = "ai.operation.id"
    OPERATION_NAME = "ai.operation.name"
    OPERATION_PARENT_ID = "ai.operation.parentId"
    OPERATION_SYNTHETIC_SOURCE = "ai.operation.syntheticSource"
    SESSION_ID = "ai.session.id"
    SESSION_IS_FIRST = "ai.session.isFirst"
    USER_ACCOUNT_ID = "ai.user.accountId"
    USER_AUTH_USER_ID = "ai.user.authUserId"
    USER_ID = "ai.user.id"
