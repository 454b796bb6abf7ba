from studio_access.models.tenant import Tenant
from studio_access.models.user import User
from studio_access.models.client import Client
from studio_access.models.agent import Agent
from studio_access.models.team_member import TeamMember
from studio_access.models.membership import TenantMembership
from studio_access.models.studio import Booking, Gallery, Invoice, Service
from studio_access.models.verification_token import VerificationToken
from studio_access.models.audit_log import AuditLog
from studio_access.models.code_attempt import CodeAttempt
