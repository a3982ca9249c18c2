# Models package - normalized database models
from institute_crm.models.reference import Branch, Course, EnquirySource, RequiredService
from institute_crm.models.user import User
from institute_crm.models.enquiry import Enquiry, EnquiryStatus, FollowUp, FollowUpStatus, CallLog
from institute_crm.models.activity import EnquiryActivity, ActivityType
from institute_crm.models.job_order import JobOrder, JobLead, JobLeadStatus
from institute_crm.models.notification import Notification, NotificationType
