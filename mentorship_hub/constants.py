# mentorship_hub/constants.py
class ErrorMessages:
    PROFILE_NOT_FOUND = "Profile not found"
    REQUEST_NOT_FOUND = "Mentorship request not found"
    NOTIFICATION_NOT_FOUND = "Notification not found"
    EMPTY_MESSAGE = "Message cannot be empty"
    MESSAGE_TOO_LONG = "Message cannot exceed {limit} characters"
    ONLY_STUDENTS_REQUEST = "Only students can request mentorship"
    NOT_A_MENTOR = "Selected profile is not a mentor"
    DUPLICATE_PENDING = "You already have a pending request with this mentor"
    DUPLICATE_ACTIVE = "You already have an active mentorship with this mentor"
    DUPLICATE_OPEN = "An open mentorship request already exists for this pair"
    NOT_REQUEST_MENTOR = "Only the requested mentor can respond to this request"
    NOT_REQUEST_PARTICIPANT = "Only the student or mentor can act on this mentorship"
    INVALID_TRANSITION = "Cannot {action} a request that is {status}"
    NOT_NOTIFICATION_OWNER = "Not authorized to modify this notification"
    CANNOT_FOLLOW_SELF = "You cannot follow yourself"
    ALREADY_FOLLOWING = "Already following this profile"
    NOT_FOLLOWING = "Not following this profile"
    ADMIN_ONLY = "Only admins can publish announcements"
    STORE_UNAVAILABLE = "Storage is temporarily unavailable, please retry"

class NotificationTitles:
    NEW_MENTORSHIP_REQUEST = "New Mentorship Request"
    MENTORSHIP_DECIDED = "Mentorship Request {decision}"
    MENTORSHIP_COMPLETED = "Mentorship Completed"
    NEW_MESSAGE = "New Message"
    CONNECTION_REQUEST = "New Connection Request"
    KNOWLEDGE_REQUEST = "Knowledge Sharing Request"
    NEW_FOLLOWER = "New Follower"
    POST_LIKED = "Post Liked"
    NEW_COMMENT = "New Comment"
