from marshmallow import Schema, fields, validate

from services.entities import PRIORITIES, ROLES, SPRINT_STATUSES

# Attribute names stay snake_case; data_key gives the camelCase JSON names

# --- Plain Schemas: Core attributes, for basic input / ID assignments ---

# User registration
class PlainUserSchema(Schema):
    id = fields.Int(dump_only = True)
    username = fields.Str(required = True, validate = validate.Length(min = 3, max = 80))
    email = fields.Email(required = True, validate = validate.Length(max = 120))
    # Password is load_only, so it's never dumped.
    password = fields.Str(required = True, load_only = True, validate = validate.Length(min = 8, max = 256))

# Login accepts either the email or the username
class UserLoginSchema(Schema):
    identifier = fields.Str(required = True, validate = validate.Length(min = 1, max = 120))
    password = fields.Str(required = True, load_only = True)

class PlainProjectSchema(Schema):
    id = fields.Int(dump_only = True)
    title = fields.Str(required = True, validate = validate.Length(min = 1, max = 120))
    description = fields.Str(load_default = "", validate = validate.Length(max = 5000))
    end_goal = fields.Str(data_key = "endGoal", allow_none = True, validate = validate.Length(max = 5000))

class PlainSprintSchema(Schema):
    id = fields.Int(dump_only = True)
    title = fields.Str(required = True, validate = validate.Length(min = 1, max = 120))
    description = fields.Str(load_default = "", validate = validate.Length(max = 5000))
    start_date = fields.Date(data_key = "startDate", required = True)
    end_date = fields.Date(data_key = "endDate", required = True)
    status = fields.Str(load_default = "planned", validate = validate.OneOf(SPRINT_STATUSES))

class PlainTaskSchema(Schema):
    id = fields.Int(dump_only = True)
    title = fields.Str(required = True, validate = validate.Length(min = 1, max = 200))
    description = fields.Str(allow_none = True, validate = validate.Length(max = 5000))
    # Board column name; custom columns are free text
    status = fields.Str(validate = validate.Length(min = 1, max = 80))
    assigned_to = fields.Str(data_key = "assignedTo", allow_none = True, validate = validate.Length(max = 120))
    priority = fields.Str(allow_none = True, validate = validate.OneOf(PRIORITIES))
    story_points = fields.Int(data_key = "storyPoints", allow_none = True, validate = validate.Range(min = 0))

# Full Schemas: Inherits from Plain, adds what the server fills in

class ProjectSchema(PlainProjectSchema):
    owner_id = fields.Int(data_key = "ownerId", dump_only = True)
    owner_name = fields.Str(data_key = "ownerName", dump_only = True)
    # True when the viewer reaches the project as a collaborator
    is_collaboration = fields.Bool(data_key = "isCollaboration", dump_only = True)
    role = fields.Str(dump_only = True, allow_none = True)
    created_at = fields.DateTime(data_key = "createdAt", dump_only = True)
    updated_at = fields.DateTime(data_key = "updatedAt", dump_only = True)

class SprintSchema(PlainSprintSchema):
    project_id = fields.Int(data_key = "projectId", dump_only = True)
    created_at = fields.DateTime(data_key = "createdAt", dump_only = True)
    updated_at = fields.DateTime(data_key = "updatedAt", dump_only = True)

class TaskSchema(PlainTaskSchema):
    sprint_id = fields.Int(data_key = "sprintId", dump_only = True, allow_none = True)
    project_id = fields.Int(data_key = "projectId", dump_only = True)
    completion_date = fields.Date(data_key = "completionDate", dump_only = True, allow_none = True)
    created_at = fields.DateTime(data_key = "createdAt", dump_only = True)
    updated_at = fields.DateTime(data_key = "updatedAt", dump_only = True)

class CollaboratorSchema(Schema):
    id = fields.Int(dump_only = True)
    project_id = fields.Int(data_key = "projectId", dump_only = True)
    user_id = fields.Int(data_key = "userId", dump_only = True)
    username = fields.Str(dump_only = True)
    email = fields.Str(dump_only = True)
    role = fields.Str(dump_only = True)
    created_at = fields.DateTime(data_key = "createdAt", dump_only = True)

class BurndownPointSchema(Schema):
    date = fields.Date(dump_only = True)
    ideal_points = fields.Int(data_key = "idealPoints", dump_only = True)
    actual_points = fields.Int(data_key = "actualPoints", dump_only = True)

class TimelineEntrySchema(Schema):
    sprint_id = fields.Int(data_key = "sprintId", dump_only = True)
    title = fields.Str(dump_only = True)
    status = fields.Str(dump_only = True)
    start_date = fields.Date(data_key = "startDate", dump_only = True)
    end_date = fields.Date(data_key = "endDate", dump_only = True)
    duration_days = fields.Int(data_key = "durationDays", dump_only = True)
    offset_days = fields.Int(data_key = "offsetDays", dump_only = True)
    offset_percent = fields.Float(data_key = "offsetPercent", dump_only = True)
    width_percent = fields.Float(data_key = "widthPercent", dump_only = True)

class BoardColumnSchema(Schema):
    id = fields.Int(dump_only = True, allow_none = True)
    sprint_id = fields.Int(data_key = "sprintId", dump_only = True)
    title = fields.Str(required = True, validate = validate.Length(min = 1, max = 80))
    order_index = fields.Int(data_key = "orderIndex", dump_only = True)
    # Built-in columns have no id and cannot be deleted
    is_default = fields.Bool(data_key = "isDefault", dump_only = True)

# --- Schemas for Specific Operations (like updates or specialized inputs) ---

class ProjectUpdateSchema(Schema):
    title = fields.Str(validate = validate.Length(min = 1, max = 120))
    description = fields.Str(allow_none = True, validate = validate.Length(max = 5000))
    end_goal = fields.Str(data_key = "endGoal", allow_none = True, validate = validate.Length(max = 5000))

class SprintUpdateSchema(Schema):
    title = fields.Str(validate = validate.Length(min = 1, max = 120))
    description = fields.Str(validate = validate.Length(max = 5000))
    start_date = fields.Date(data_key = "startDate")
    end_date = fields.Date(data_key = "endDate")
    status = fields.Str(validate = validate.OneOf(SPRINT_STATUSES))

# Moving a task between sprints and the backlog goes through sprintId/status
class TaskUpdateSchema(PlainTaskSchema):
    title = fields.Str(validate = validate.Length(min = 1, max = 200))
    sprint_id = fields.Int(data_key = "sprintId", allow_none = True)
    # Explicit overwrite; otherwise set the first time the task is done
    completion_date = fields.Date(data_key = "completionDate", allow_none = True)

class CollaboratorCreateSchema(Schema):
    # Email or username of the user to invite
    identifier = fields.Str(required = True, validate = validate.Length(min = 1, max = 120))
    role = fields.Str(required = True, validate = validate.OneOf(ROLES))

class CollaboratorUpdateSchema(Schema):
    role = fields.Str(required = True, validate = validate.OneOf(ROLES))
