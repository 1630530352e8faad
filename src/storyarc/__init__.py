""" Story Arc: narrative event triggering for a month-long life sim. """
