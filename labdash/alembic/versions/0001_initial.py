"""Users and lab parameters."""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False, index=True),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=120)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "lab_parameters",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("parameter_name", sa.String(length=255), nullable=False),
        sa.Column("value", sa.String(length=255), nullable=False),
        sa.Column("unit", sa.String(length=64), nullable=False),
        sa.Column("normal_range", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("test_date", sa.String(length=10), nullable=False),
        sa.Column("source_file", sa.String(length=255), nullable=False),
        sa.Column("extracted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.UniqueConstraint(
            "user_id", "parameter_name", "value", "test_date", "unit",
            name="uq_lab_parameters_primary_key",
        ),
    )
    op.create_index(
        "ix_lab_parameters_source_key",
        "lab_parameters",
        ["user_id", "parameter_name", "source_file", "test_date"],
    )
    op.create_index("ix_lab_parameters_user_source", "lab_parameters", ["user_id", "source_file"])


def downgrade():
    op.drop_index("ix_lab_parameters_user_source", table_name="lab_parameters")
    op.drop_index("ix_lab_parameters_source_key", table_name="lab_parameters")
    op.drop_table("lab_parameters")
    op.drop_table("users")
