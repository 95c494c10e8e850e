from django.urls import path
from . import views

urlpatterns = [
    # Authentication
    path('api/auth/csrf', views.csrf_view, name='csrf'),
    path('api/auth/login', views.login_view, name='login'),
    path('api/auth/logout', views.logout_view, name='logout'),
    path('api/auth/me', views.me_view, name='me'),

    # Applications
    path('api/applications', views.application_list, name='application_list'),
    path('api/applications/all', views.application_monitoring_list, name='application_monitoring_list'),
    path('api/applications/search', views.application_search, name='application_search'),
    path('api/applications/export', views.application_export_excel, name='application_export_excel'),
    path('api/applications/draft', views.create_draft, name='create_draft'),
    path('api/applications/<int:pk>', views.application_detail, name='application_detail'),
    path('api/applications/<int:pk>/draft', views.update_draft, name='update_draft'),
    path('api/applications/<int:pk>/documents', views.application_documents, name='application_documents'),
    path('api/applications/<int:pk>/submit', views.submit_application, name='submit_application'),
    path('api/applications/<int:pk>/inspection-schedule', views.inspection_schedule, name='inspection_schedule'),
    path('api/applications/<int:pk>/inspection-schedule/acknowledge', views.acknowledge_inspection,
         name='acknowledge_inspection'),
    path('api/applications/<int:pk>/payments', views.application_payments, name='application_payments'),
    path('api/applications/<int:pk>/review', views.review_application, name='review_application'),
    path('api/applications/<int:pk>/send-back', views.send_back_application, name='send_back_application'),
    path('api/applications/<int:pk>/move-to-inspection', views.move_to_inspection, name='move_to_inspection'),
    path('api/applications/<int:pk>/complete-inspection', views.complete_inspection, name='complete_inspection'),
    path('api/applications/<int:pk>/timeline', views.application_timeline, name='application_timeline'),

    # Settings
    path('api/settings/upload-policy', views.upload_policy_view, name='upload_policy'),

    # Service Center
    path('api/service-center', views.service_center, name='service_center'),
    path('api/existing-owners', views.existing_owner_intake, name='existing_owner_intake'),
    path('api/existing-owners/settings', views.existing_owner_settings, name='existing_owner_settings'),
    path('api/existing-owners/active', views.existing_owner_active, name='existing_owner_active'),

    # Dealing Assistant
    path('api/da/applications', views.da_applications, name='da_applications'),
    path('api/da/applications/<int:pk>', views.da_application_detail, name='da_application_detail'),
    path('api/da/applications/<int:pk>/start-scrutiny', views.da_start_scrutiny, name='da_start_scrutiny'),
    path('api/da/applications/<int:pk>/save-scrutiny', views.da_save_scrutiny, name='da_save_scrutiny'),
    path('api/da/applications/<int:pk>/forward-to-dtdo', views.da_forward_to_dtdo, name='da_forward_to_dtdo'),
    path('api/da/applications/<int:pk>/send-back', views.da_send_back, name='da_send_back'),
    path('api/da/inspections', views.da_inspections, name='da_inspections'),
    path('api/da/inspections/<int:order_id>/submit-report', views.da_submit_inspection_report,
         name='da_submit_inspection_report'),

    # DTDO
    path('api/dtdo/applications', views.dtdo_applications, name='dtdo_applications'),
    path('api/dtdo/applications/<int:pk>', views.dtdo_application_detail, name='dtdo_application_detail'),
    path('api/dtdo/applications/<int:pk>/accept', views.dtdo_accept, name='dtdo_accept'),
    path('api/dtdo/applications/<int:pk>/reject', views.dtdo_reject, name='dtdo_reject'),
    path('api/dtdo/applications/<int:pk>/revert', views.dtdo_revert, name='dtdo_revert'),
    path('api/dtdo/available-das', views.dtdo_available_das, name='dtdo_available_das'),
    path('api/dtdo/schedule-inspection', views.dtdo_schedule_inspection, name='dtdo_schedule_inspection'),
    path('api/dtdo/inspection-report/<int:pk>', views.dtdo_inspection_report, name='dtdo_inspection_report'),
    path('api/dtdo/inspection-report/<int:pk>/approve', views.dtdo_report_approve, name='dtdo_report_approve'),
    path('api/dtdo/inspection-report/<int:pk>/reject', views.dtdo_report_reject, name='dtdo_report_reject'),
    path('api/dtdo/inspection-report/<int:pk>/raise-objections', views.dtdo_report_raise_objections,
         name='dtdo_report_raise_objections'),

    # Payments
    path('api/payments/pending', views.pending_payments, name='pending_payments'),
    path('api/payments/<int:pk>/confirm', views.confirm_payment, name='confirm_payment'),
]
