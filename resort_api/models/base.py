from tortoise import fields, models


class TimestampMixin:
    """
    Mixin to add created_at and updated_at fields to models
    """

    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)


class BaseModel(TimestampMixin, models.Model):
    """
    Base model with a UUID primary key and timestamps for all models to inherit from
    """

    id = fields.UUIDField(primary_key=True)

    class Meta:
        abstract = True
