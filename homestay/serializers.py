"""
HP Homestay Portal - Response Builders
Plain dicts for JsonResponse; Decimal and datetime values are left to DjangoJSONEncoder
"""


def serialize_user(user):
    if user is None:
        return None
    return {
        'id': user.pk,
        'username': user.username,
        'fullName': user.display_name,
        'role': user.role,
        'district': user.district or None,
        'designation': user.designation or None,
        'mobile': user.mobile,
        'email': user.email or None,
    }


def serialize_application(application, correction=None):
    data = {
        'id': application.pk,
        'applicationNumber': application.application_number,
        'applicationKind': application.application_kind,
        'status': application.status,
        'currentStage': application.current_stage,
        'category': application.category,
        'locationType': application.location_type,
        'projectType': application.project_type,
        'ownerId': application.owner_id,
        'ownerName': application.owner_name,
        'ownerMobile': application.owner_mobile,
        'ownerEmail': application.owner_email,
        'ownerAadhaar': application.owner_aadhaar,
        'ownerGender': application.owner_gender,
        'guardianName': application.guardian_name,
        'propertyName': application.property_name,
        'address': application.address,
        'district': application.district,
        'tehsil': application.tehsil,
        'block': application.block,
        'pincode': application.pincode,
        'singleBedRooms': application.single_bed_rooms,
        'singleBedBeds': application.single_bed_beds,
        'singleBedRoomRate': application.single_bed_room_rate,
        'doubleBedRooms': application.double_bed_rooms,
        'doubleBedBeds': application.double_bed_beds,
        'doubleBedRoomRate': application.double_bed_room_rate,
        'familySuites': application.family_suites,
        'familySuiteBeds': application.family_suite_beds,
        'familySuiteRate': application.family_suite_rate,
        'totalRooms': application.total_rooms,
        'attachedWashrooms': application.attached_washrooms,
        'distanceAirport': application.distance_airport,
        'distanceRailway': application.distance_railway,
        'distanceCityCenter': application.distance_city_center,
        'distanceShopping': application.distance_shopping,
        'distanceBusStand': application.distance_bus_stand,
        'amenities': application.amenities,
        'certificateValidityYears': application.certificate_validity_years,
        'isPangiSubDivision': application.is_pangi_sub_division,
        'submittedAt': application.submitted_at,
        'approvedAt': application.approved_at,
        'rejectionReason': application.rejection_reason or None,
        'clarificationRequested': application.clarification_requested or None,
        'correctionSubmissionCount': application.correction_submission_count,
        'daId': application.da_id,
        'daRemarks': application.da_remarks or None,
        'daForwardedDate': application.da_forwarded_date,
        'dtdoId': application.dtdo_id,
        'dtdoRemarks': application.dtdo_remarks or None,
        'dtdoReviewDate': application.dtdo_review_date,
        'districtNotes': application.district_notes or None,
        'stateNotes': application.state_notes or None,
        'siteInspectionScheduledDate': application.site_inspection_scheduled_date,
        'siteInspectionCompletedDate': application.site_inspection_completed_date,
        'siteInspectionOutcome': application.site_inspection_outcome or None,
        'siteInspectionNotes': application.site_inspection_notes or None,
        'siteInspectionFindings': application.site_inspection_findings,
        'certificateNumber': application.certificate_number,
        'certificateIssuedDate': application.certificate_issued_date,
        'certificateExpiryDate': application.certificate_expiry_date,
        'baseFee': application.base_fee,
        'totalBeforeDiscounts': application.total_before_discounts,
        'validityDiscount': application.validity_discount,
        'femaleOwnerDiscount': application.female_owner_discount,
        'pangiDiscount': application.pangi_discount,
        'totalDiscount': application.total_discount,
        'totalFee': application.total_fee,
        'parentApplicationId': application.parent_application_id,
        'parentApplicationNumber': application.parent_application_number or None,
        'parentCertificateNumber': application.parent_certificate_number or None,
        'inheritedCertificateValidUpto': application.inherited_certificate_valid_upto,
        'serviceContext': application.service_context,
        'serviceNotes': application.service_notes or None,
        'serviceRequestedAt': application.service_requested_at,
        'createdAt': application.created_at,
        'updatedAt': application.updated_at,
    }
    if correction is not None:
        data['latestCorrection'] = correction
    return data


def serialize_document(document):
    return {
        'id': document.pk,
        'applicationId': document.application_id,
        'documentType': document.document_type,
        'fileName': document.file_name,
        'filePath': document.file_path,
        'fileSize': document.file_size,
        'mimeType': document.mime_type,
        'uploadedAt': document.uploaded_at,
        'verificationStatus': document.verification_status,
        'verificationNotes': document.verification_notes or None,
        'verifiedBy': document.verified_by_id,
        'verificationDate': document.verification_date,
    }


def serialize_inspection_order(order):
    if order is None:
        return None
    return {
        'id': order.pk,
        'applicationId': order.application_id,
        'scheduledBy': order.scheduled_by_id,
        'scheduledDate': order.scheduled_date,
        'assignedTo': serialize_user(order.assigned_to),
        'assignedDate': order.assigned_date,
        'inspectionDate': order.inspection_date,
        'inspectionAddress': order.inspection_address,
        'specialInstructions': order.special_instructions or None,
        'status': order.status,
        'dtdoNotes': order.dtdo_notes or None,
    }


def serialize_inspection_report(report):
    if report is None:
        return None
    return {
        'id': report.pk,
        'inspectionOrderId': report.inspection_order_id,
        'applicationId': report.application_id,
        'submittedBy': report.submitted_by_id,
        'submittedDate': report.submitted_date,
        'actualInspectionDate': report.actual_inspection_date,
        'roomCountVerified': report.room_count_verified,
        'actualRoomCount': report.actual_room_count,
        'categoryMeetsStandards': report.category_meets_standards,
        'recommendedCategory': report.recommended_category or None,
        'mandatoryChecklist': report.mandatory_checklist,
        'mandatoryRemarks': report.mandatory_remarks or None,
        'desirableChecklist': report.desirable_checklist,
        'desirableRemarks': report.desirable_remarks or None,
        'fireSafetyCompliant': report.fire_safety_compliant,
        'structuralSafety': report.structural_safety,
        'overallSatisfactory': report.overall_satisfactory,
        'recommendation': report.recommendation,
        'detailedFindings': report.detailed_findings or None,
    }


def serialize_payment(payment):
    return {
        'id': payment.pk,
        'applicationId': payment.application_id,
        'paymentType': payment.payment_type,
        'amount': payment.amount,
        'paymentGateway': payment.payment_gateway,
        'gatewayTransactionId': payment.gateway_transaction_id or None,
        'paymentStatus': payment.payment_status,
        'initiatedAt': payment.initiated_at,
        'completedAt': payment.completed_at,
        'receiptNumber': payment.receipt_number or None,
    }
