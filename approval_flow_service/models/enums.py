import enum


class RequestType(str, enum.Enum):
    RECESS = "RECESS"
    TERMINATION = "TERMINATION"
    HIRING = "HIRING"
    PURCHASE = "PURCHASE"
    REMUNERATION = "REMUNERATION"


class RequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


# step 상태값은 request 상태값과 동일한 집합을 사용
StepStatus = RequestStatus


class HiringStatus(str, enum.Enum):
    WAITING = "WAITING"
    IN_PROGRESS = "IN_PROGRESS"
    HIRED = "HIRED"


class HiringType(str, enum.Enum):
    INCREASE = "INCREASE"
    REPLACEMENT = "REPLACEMENT"


class Priority(str, enum.Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


REQUEST_TYPE_LABELS = {
    RequestType.RECESS: "Recesso/Férias",
    RequestType.TERMINATION: "Desligamento",
    RequestType.HIRING: "Contratação",
    RequestType.PURCHASE: "Solicitação de Compra",
    RequestType.REMUNERATION: "Mudança de Remuneração",
}
