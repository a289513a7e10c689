"""User-facing messages shared by validators, services and routes."""


class ErrorMessage:
    REQUIRED_FIELDS = "Required fields were not provided..."
    REQUIRED_FIELDS_DESC = " is required!"
    INVALID_FIELDS = "One or more request fields are invalid..."
    UUID_NOT_VALID_FORMAT = "Some ID provided does not have a valid format!"
    UUID_NOT_VALID_FORMAT_DESC = (
        "A 24-byte hex ID similar to this: 507f191e810c19729de860ea is expected."
    )
    INVALID_DATETIME_FORMAT = "Datetime: {} is not in valid ISO 8601 format."
    INVALID_NUMBER = "The value '{}' of {} field is not a number."
    INVALID_PAGINATION = "The value '{}' of {} parameter must be a positive integer."
    NEGATIVE_PARAMETER = "{} cannot be less than or equal to zero!"
    INVALID_NUMBER_FIELD = "Provided {} is not a valid number!"
    EMPTY_STRING = "{} must have at least one character!"
    DUPLICATE = "A registration with the same unique data already exists!"
    INTERNAL_SERVER_ERROR = "An internal server error has occurred."
    PASSWORD_NOT_UPDATABLE = "This parameter could not be updated."
    PASSWORD_NOT_UPDATABLE_DESC = (
        "A specific route to update user password already exists. "
        "Access: PATCH /v1/users/{}/password to update your password."
    )


class User:
    NOT_FOUND = "User not found!"
    NOT_FOUND_DESCRIPTION = "User not found or already removed. A new operation for the same resource is required."
    PASSWORD_NOT_MATCH = "Password does not match!"
    PASSWORD_NOT_MATCH_DESCRIPTION = "The old password parameter does not match with the actual user password."


class Child:
    ALREADY_REGISTERED = "Child is already registered!"
    NOT_FOUND = "Child not found!"
    NOT_FOUND_DESCRIPTION = "Child not found or already removed. A new operation for the same resource is required."
    ASSOCIATION_FAILURE = "The association could not be performed because the child does not have a record."
    CHILDREN_REGISTER_REQUIRED = "It is necessary for children to be registered before proceeding."
    IDS_WITH_PROBLEMS = "The following IDs were verified without registration: {}"


class Family:
    ALREADY_REGISTERED = "Family is already registered!"
    NOT_FOUND = "Family not found!"
    NOT_FOUND_DESCRIPTION = "Family not found or already removed. A new operation for the same resource is required."


class Educator:
    ALREADY_REGISTERED = "Educator is already registered!"
    NOT_FOUND = "Educator not found!"
    NOT_FOUND_DESCRIPTION = "Educator not found or already removed. A new operation for the same resource is required."


class HealthProfessional:
    ALREADY_REGISTERED = "Health Professional is already registered!"
    NOT_FOUND = "Health Professional not found!"
    NOT_FOUND_DESCRIPTION = (
        "Health Professional not found or already removed. A new operation for the same resource is required."
    )


class Application:
    ALREADY_REGISTERED = "Application is already registered!"
    NOT_FOUND = "Application not found!"
    NOT_FOUND_DESCRIPTION = (
        "Application not found or already removed. A new operation for the same resource is required."
    )


class Institution:
    ALREADY_REGISTERED = "Institution is already registered!"
    NOT_FOUND = "Institution not found!"
    NOT_FOUND_DESCRIPTION = (
        "Institution not found or already removed. A new operation for the same resource is required."
    )
    REGISTER_REQUIRED = "The institution provided does not have a registration."
    ALERT_REGISTER_REQUIRED = "It is necessary that the institution be registered before trying again."


class ChildrenGroup:
    ALREADY_REGISTERED = "Children Group is already registered!"
    NOT_FOUND = "Children Group not found!"
    NOT_FOUND_DESCRIPTION = (
        "Children Group not found or already removed. A new operation for the same resource is required."
    )


class Strings:
    APP_TITLE = "Account Service"
    APP_DESCRIPTION = "Microservice for user management."
    ERROR_MESSAGE = ErrorMessage
    USER = User
    CHILD = Child
    FAMILY = Family
    EDUCATOR = Educator
    HEALTH_PROFESSIONAL = HealthProfessional
    APPLICATION = Application
    INSTITUTION = Institution
    CHILDREN_GROUP = ChildrenGroup
