"""Add partner association tables

Revision ID: 8b3e5d0c4a27
Revises: 1f4c2a9d7e10
Create Date: 2026-09-16 15:42:51.208734

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "8b3e5d0c4a27"
down_revision = "1f4c2a9d7e10"
branch_labels = None
depends_on = None


def upgrade():
    with op.batch_alter_table("users", schema=None) as batch_op:
        batch_op.add_column(sa.Column("usr_par_code", sa.String(length=64), nullable=True))
        batch_op.create_index(batch_op.f("ix_users_usr_par_code"), ["usr_par_code"])

    op.create_table(
        "partner_project",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("pap_par_code", sa.String(length=64), nullable=False),
        sa.Column("pap_prj_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["pap_prj_id"], ["projects.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("pap_par_code", "pap_prj_id", name="uq_partner_project"),
    )
    op.create_index(
        op.f("ix_partner_project_pap_par_code"), "partner_project", ["pap_par_code"]
    )
    op.create_index(
        op.f("ix_partner_project_pap_prj_id"), "partner_project", ["pap_prj_id"]
    )
    op.create_table(
        "issue_partner",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("ipa_iss_id", sa.Integer(), nullable=False),
        sa.Column("ipa_par_code", sa.String(length=64), nullable=False),
        sa.Column("ipa_created_date", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["ipa_iss_id"], ["issues.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("ipa_iss_id", "ipa_par_code", name="uq_issue_partner"),
    )
    op.create_index(
        op.f("ix_issue_partner_ipa_iss_id"), "issue_partner", ["ipa_iss_id"]
    )


def downgrade():
    op.drop_index(op.f("ix_issue_partner_ipa_iss_id"), table_name="issue_partner")
    op.drop_table("issue_partner")
    op.drop_index(op.f("ix_partner_project_pap_prj_id"), table_name="partner_project")
    op.drop_index(
        op.f("ix_partner_project_pap_par_code"), table_name="partner_project"
    )
    op.drop_table("partner_project")
    with op.batch_alter_table("users", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_users_usr_par_code"))
        batch_op.drop_column("usr_par_code")
