"""
Taiwan business-tax filing: MOF e-invoice sheet import, 81-byte media file
export and the Form 401 summary.
"""
