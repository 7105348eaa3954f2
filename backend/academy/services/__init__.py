"""
Football Academy Backend — Services Layer
===========================================

What:  Business rules between the HTTP routes and the ORM models.
How:   Each service is a class with a module-level singleton. Methods take
       the request's AsyncSession and the calling User, enforce role and
       team access, and raise AcademyError subclasses on failure.

Service Inventory:
    - security / access:   password hashing, JWTs, role and team policy
    - UserService / AuthService
    - TeamService / PlayerService / FileService (player photos)
    - TrainingService / CheckInService (QR check-in)
    - MatchService (fixtures, events, statistics)
    - BillingService (plans, invoices, payments, reports)
    - AnnouncementService
    - DashboardService / NotificationService (read-only aggregations)
"""
